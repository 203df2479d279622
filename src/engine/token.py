"""
Token — интерфейс токена и in-memory реализация

Движок общается с токеном только через balance_of / transfer.
snapshot / restore моделируют откат транзакции хост-леджера: движок
восстанавливает балансы, если операция завершилась ошибкой.
"""

from typing import Dict, Protocol


class Token(Protocol):
    symbol: str

    def balance_of(self, holder: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def snapshot(self) -> object: ...

    def restore(self, state: object) -> None: ...


class InMemoryToken:
    """
    Простой леджер балансов.

    transfer возвращает False (а не исключение) при нехватке баланса,
    как ERC20-токены без revert.
    """

    def __init__(self, symbol: str):
        self.symbol = symbol
        self._balances: Dict[str, int] = {}

    def __repr__(self) -> str:
        return f"InMemoryToken({self.symbol!r})"

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def mint(self, holder: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        self._balances[holder] = self.balance_of(holder) + amount

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    def total_supply(self) -> int:
        return sum(self._balances.values())

    def snapshot(self) -> Dict[str, int]:
        return dict(self._balances)

    def restore(self, state: Dict[str, int]) -> None:
        self._balances = dict(state)
