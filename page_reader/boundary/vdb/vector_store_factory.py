"""
Vector store factory for selecting between the in-memory and SQL stores.

Depends on VECTOR_STORE_STORE_TYPE.
Provides consistent interface regardless of underlying implementation.

Dependencies: page_reader.boundary.vdb, page_reader.configs
System role: Vector store instantiation and selection
"""

import logging

from page_reader.boundary.vdb.memory_store import InMemoryVectorStore
from page_reader.boundary.vdb.sql_store import SqlVectorStore
from page_reader.boundary.vdb.vector_store import VectorStore
from page_reader.configs.vector_store import VectorStoreSettings

logger = logging.getLogger(__name__)


async def create_vector_store(settings: VectorStoreSettings | None = None) -> VectorStore:
    """
    Build and initialize the configured vector store.

    Args:
        settings: Vector store settings (reads environment when None)

    Returns:
        VectorStore: Ready-to-use store

    Raises:
        ValueError: If store_type is invalid
        DatabaseConnectionError: If the SQL store cannot be initialized
    """
    settings = settings or VectorStoreSettings()
    store_type = settings.store_type.lower()

    if store_type == "memory":
        logger.info(f"{__name__}:create_vector_store - Creating in-memory vector store")
        store: VectorStore = InMemoryVectorStore()
    elif store_type == "sql":
        logger.info(f"{__name__}:create_vector_store - Creating SQL vector store")
        store = SqlVectorStore(settings)
    else:
        raise ValueError(
            f"Invalid VECTOR_STORE_STORE_TYPE: {store_type}. Must be 'memory' or 'sql'."
        )

    await store.initialize()
    return store
