from __future__ import annotations

from dataclasses import dataclass

import pytest

from gatewaykit.middleware import (
    get_and_unset_op,
    get_collection_op,
    set_collection_ops,
    unset_op,
)


@dataclass
class PageInfo:
    offset: int = 0
    size: int = 0


@dataclass
class Sorting:
    criteria: str = ""


@dataclass
class TestResponse:
    page_info: PageInfo | None = None


@dataclass
class TestRequest:
    sorting: Sorting | None = None
    page_info: PageInfo | None = None
    name: str = ""


@dataclass(frozen=True)
class FrozenRequest:
    sorting: Sorting | None = None


def test_unset_op():
    res = TestResponse(page_info=PageInfo(offset=30, size=10))
    page = unset_op(res, PageInfo)
    assert page.offset == 30
    assert page.size == 10
    assert res.page_info is None


def test_unset_op_nil_operator():
    res = TestResponse(page_info=PageInfo(offset=30, size=10))
    with pytest.raises(TypeError, match="operator is not a type - None"):
        unset_op(res, None)


def test_unset_op_nil_response():
    with pytest.raises(TypeError, match="response is None"):
        unset_op(None, None)


def test_unset_op_non_struct_response():
    with pytest.raises(TypeError, match="response value is not a struct - int"):
        unset_op(5, None)


def test_get_collection_op_keeps_field():
    info = PageInfo(offset=5, size=2)
    res = TestResponse(page_info=info)
    assert get_collection_op(res, PageInfo) == PageInfo(offset=5, size=2)
    assert res.page_info is info


def test_get_and_unset_op_returns_field_name():
    res = TestResponse(page_info=PageInfo(offset=1))
    assert get_and_unset_op(res, PageInfo, False) == ("page_info", PageInfo(offset=1))


def test_get_and_unset_op_empty_field():
    assert get_and_unset_op(TestResponse(), PageInfo, False) == ("page_info", None)


def test_get_and_unset_op_no_matching_field():
    assert get_and_unset_op(TestResponse(), Sorting, False) == (None, None)


def test_set_collection_ops_sets_matching_field():
    req = TestRequest(name="x")
    sorting = Sorting("name asc")
    set_collection_ops(req, sorting)
    assert req.sorting is sorting
    assert req.page_info is None
    assert req.name == "x"


def test_set_collection_ops_then_get():
    req = TestRequest()
    set_collection_ops(req, PageInfo(offset=10, size=20))
    assert get_collection_op(req, PageInfo) == PageInfo(offset=10, size=20)


def test_set_collection_ops_frozen_request():
    with pytest.raises(TypeError, match="cannot be set"):
        set_collection_ops(FrozenRequest(), Sorting("age desc"))


def test_set_collection_ops_non_struct_request():
    with pytest.raises(TypeError, match="request value is not a struct - str"):
        set_collection_ops("request", Sorting())


def test_set_collection_ops_nil_request():
    with pytest.raises(TypeError, match="request is None"):
        set_collection_ops(None, Sorting())