import logging
import threading
from typing import Dict, List, Optional

from src.service.order_statistics_model import OrderStatisticsModel

logger: logging.Logger = logging.getLogger(__name__)


class ModelStore:
    """
    In-memory registry of derived order statistics models, keyed by model ID.

    Only derived models are stored: they carry the quantile tables that the
    test and assess phases consume.
    """

    def __init__(self) -> None:
        self._models: Dict[str, OrderStatisticsModel] = {}
        self._lock: threading.RLock = threading.RLock()

    def put(self, model_id: str, model: OrderStatisticsModel) -> None:
        if not model.is_derived:
            raise ValueError(f"Model {model_id} has no quantile table and cannot be stored")
        with self._lock:
            replaced = model_id in self._models
            self._models[model_id] = model
        logger.info(f"{'Replaced' if replaced else 'Stored'} order statistics model {model_id}")

    def get(self, model_id: str) -> Optional[OrderStatisticsModel]:
        with self._lock:
            return self._models.get(model_id)

    def delete(self, model_id: str) -> bool:
        with self._lock:
            if model_id not in self._models:
                return False
            del self._models[model_id]
        logger.info(f"Deleted order statistics model {model_id}")
        return True

    def list_models(self) -> List[str]:
        with self._lock:
            return sorted(self._models.keys())

    def clear(self) -> None:
        with self._lock:
            self._models.clear()
