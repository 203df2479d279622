"""
Identifiers — детерминированные идентификаторы пулов

PoolId = "0x" + sha256(engine_address ‖ maturity ‖ sigma ‖ strike),
каждое целое — 32-байтовое big-endian слово.
"""

import hashlib
import re
from typing import Final

POOL_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^0x[0-9a-f]{64}$")

_WORD_BYTES: Final[int] = 32


def _word(value: int) -> bytes:
    return value.to_bytes(_WORD_BYTES, "big")


def compute_pool_id(engine: str, strike: int, sigma: int, maturity: int) -> str:
    """
    Идентификатор пула для калибровки.

    Args:
        engine: Адрес движка
        strike: Strike (wei)
        sigma: Волатильность (PERCENTAGE-шкала)
        maturity: Экспирация (unix seconds)

    Returns:
        Hex-строка "0x" + 64 символа

    Raises:
        OverflowError: Если параметр отрицательный или не помещается в 256 бит
    """
    payload = engine.encode("utf-8") + _word(maturity) + _word(sigma) + _word(strike)
    return "0x" + hashlib.sha256(payload).hexdigest()


def is_pool_id(value: str) -> bool:
    return bool(POOL_ID_PATTERN.match(value))
