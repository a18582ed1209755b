from infrastructure.repositories.in_memory_catalog_store import InMemoryCatalogStore
from infrastructure.repositories.sqlite_catalog_store import SqliteCatalogStore

__all__ = [
    "InMemoryCatalogStore",
    "SqliteCatalogStore",
]
