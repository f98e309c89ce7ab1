from .filesystem import FilesystemKVStore
from .helpers import open_store
from .memory import MemoryKVStore
from .sqlite import SQLiteKVStore

__all__ = ["FilesystemKVStore", "MemoryKVStore", "SQLiteKVStore", "open_store"]
