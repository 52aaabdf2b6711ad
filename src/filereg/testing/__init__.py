# src/filereg/testing/__init__.py
"""In-memory stand-ins for the content store and ledger. TEST ONLY."""
