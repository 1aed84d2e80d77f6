"""REST gateway helpers: call metadata, header matching, trailer messages, collection operators and field presence."""

__version__ = "0.1.0"