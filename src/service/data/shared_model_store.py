"""
Shared ModelStore singleton so that every endpoint sees the same models.
"""

from src.service.data.model_store import ModelStore

# Global shared ModelStore instance
_shared_model_store = None


def get_shared_model_store() -> ModelStore:
    """
    Get the shared ModelStore instance used by all order statistics endpoints.

    Returns:
        The singleton ModelStore instance
    """
    global _shared_model_store
    if _shared_model_store is None:
        _shared_model_store = ModelStore()
    return _shared_model_store
