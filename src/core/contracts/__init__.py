"""
JSON Schema контракты движка: payload событий и снимки пулов.
"""

from src.core.contracts.validators import (
    DEFAULT_SCHEMA_DIR,
    ContractValidator,
    EngineEventValidator,
    PoolSnapshotValidator,
    SchemaLoader,
    validate_engine_event,
    validate_pool_snapshot,
)

__all__ = [
    "DEFAULT_SCHEMA_DIR",
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "EngineEventValidator",
    "PoolSnapshotValidator",
    # Functions
    "validate_engine_event",
    "validate_pool_snapshot",
]
