"""
LedgerEntry — базовый класс записей ledger

model_copy(update=...) не запускает валидацию Pydantic, поэтому переходы
записей идут через _evolve: новый экземпляр собирается заново и проверяется
(ограничения ge=0 / gt=0 действуют после каждого перехода).
"""

from typing import Any, Dict, TypeVar

from pydantic import BaseModel

_Entry = TypeVar("_Entry", bound="LedgerEntry")


class LedgerEntry(BaseModel):
    model_config = {"frozen": True}

    def _evolve(self: _Entry, update: Dict[str, Any]) -> _Entry:
        return self.model_validate({**self.model_dump(), **update})
