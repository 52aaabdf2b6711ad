# src/filereg/api/routes_public_parts/__init__.py
