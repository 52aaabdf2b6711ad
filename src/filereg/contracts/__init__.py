# src/filereg/contracts/__init__.py
"""Contract interface descriptions shipped as package data."""
