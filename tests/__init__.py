"""
Test suite for the replication AMM engine

Contains:
- tests/unit/          : Unit tests for math, ledger models, contracts and engine operations
"""
