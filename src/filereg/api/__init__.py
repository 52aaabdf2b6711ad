# src/filereg/api/__init__.py
