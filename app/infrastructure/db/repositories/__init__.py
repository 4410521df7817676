from .explorer_repository import ExplorerRepository
from .gstr3b_repository import Gstr3bRepository, StorageUnavailableError

__all__ = [
    "ExplorerRepository",
    "Gstr3bRepository",
    "StorageUnavailableError",
]
