from .memory import MemoryStorage
from .protocol import StorageProtocol

__all__ = ["MemoryStorage", "StorageProtocol"]
