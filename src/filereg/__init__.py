# src/filereg/__init__.py
"""File registry: content-addressed uploads with path -> CID records on an EVM ledger."""

__version__ = "0.1.0"
