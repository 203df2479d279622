"""
Ядро replication AMM: fixed-point математика, ledger-модели, таксономия
ошибок и JSON Schema контракты.

Пакет не зависит от движка, токенов и системных часов.
"""
