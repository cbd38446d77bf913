"""String Analyzer Service: analyze, store and query strings by content hash."""

__version__ = "1.0.0"
