"""Storage backends for block participation and validator metadata."""

from .filesystem import FilesystemStore
from .interface import BlockSource, ValidatorRegistry
from .sql import SQLStore

__all__ = ["BlockSource", "FilesystemStore", "SQLStore", "ValidatorRegistry"]
