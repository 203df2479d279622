"""
Callbacks — протоколы вызывающих контрактов

Движок сначала фиксирует, сколько токенов он ожидает, затем вызывает callback
вызывающего и проверяет, что его балансы выросли как минимум на запрошенное.
Callback получает (delta_risky, delta_stable, data) и переводит токены
на адрес движка.
"""

from typing import Protocol


class Caller(Protocol):
    address: str


class CreateCallback(Caller, Protocol):
    def create_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None: ...


class DepositCallback(Caller, Protocol):
    def deposit_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None: ...


class AllocateCallback(Caller, Protocol):
    def allocate_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None: ...


class SwapCallback(Caller, Protocol):
    def swap_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None: ...


class BorrowCallback(Caller, Protocol):
    def borrow_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None: ...


class RepayCallback(Caller, Protocol):
    def repay_callback(self, delta_risky: int, delta_stable: int, data: bytes) -> None: ...
