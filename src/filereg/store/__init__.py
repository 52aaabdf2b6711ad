# src/filereg/store/__init__.py
"""
Content-store clients.

The registry only needs one capability from a store: add bytes, get back
the root CID. Implementations raise StoreUnavailable when the store cannot
be reached and StoreError for anything the store itself rejects.
"""

from filereg.store.base import ContentStore
from filereg.store.ipfs import IpfsClient

__all__ = ["ContentStore", "IpfsClient"]
