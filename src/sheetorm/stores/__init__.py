"""Remote store implementations."""

from sheetorm.stores.base import Cells, RemoteStore
from sheetorm.stores.google_sheets import GoogleSheetsStore
from sheetorm.stores.memory import MemoryStore

__all__ = ["Cells", "RemoteStore", "MemoryStore", "GoogleSheetsStore"]
