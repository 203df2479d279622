"""
Execution Lock — единый замок движка

Не блокирует: если замок уже захвачен (повторный вход из callback или
параллельный вызов), операция немедленно отклоняется с ReentrancyError.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from src.core.errors import ReentrancyError


class ExecutionLock:
    def __init__(self):
        self._lock = threading.Lock()
        self._holder: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @property
    def holder(self) -> Optional[str]:
        """Имя операции, удерживающей замок."""
        return self._holder

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise ReentrancyError(operation)
        self._holder = operation
        try:
            yield
        finally:
            self._holder = None
            self._lock.release()
