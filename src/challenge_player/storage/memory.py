"""Dict-backed storage, mainly for tests and headless runs."""

import copy
from typing import Any, Dict, Optional


class MemoryStorage:
    """Keeps documents in memory; callers never share references with it."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._documents: Dict[str, Dict[str, Any]] = copy.deepcopy(initial or {})
        self.save_count = 0

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    def save(self, key: str, document: Dict[str, Any]) -> None:
        self._documents[key] = copy.deepcopy(document)
        self.save_count += 1
