"""In-memory model and JSON persistence for a personal content library."""

from notebox.model import LibraryModel
from notebox.observable import Observable
from notebox.protocols import HostStorageProtocol
from notebox.storage import FileSystemStorage

__all__ = ["FileSystemStorage", "HostStorageProtocol", "LibraryModel", "Observable"]
