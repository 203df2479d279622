"""
JSON Schema Contract Validators

Внешние представления движка описаны JSON Schema (Draft 2020-12) в
contracts/schema/ в корне проекта:
- engine_event.json: payload событий, публикуемых после commit
- pool_snapshot.json: зафиксированное состояние пула (PoolEngine.snapshot)

Схемы загружаются один раз, проходят meta-validation и кэшируются
вместе со скомпилированным валидатором.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import jsonschema
from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import best_match

# contracts/schema относительно корня проекта (src/core/contracts → корень)
DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parents[3] / "contracts" / "schema"


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик и кэш JSON Schema файлов.

    Args:
        schema_dir: Каталог со схемами (по умолчанию contracts/schema/)
    """

    def __init__(self, schema_dir: Optional[Path] = None):
        self._schema_dir = Path(schema_dir) if schema_dir is not None else DEFAULT_SCHEMA_DIR
        if not self._schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")
        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def available(self) -> List[str]:
        """Имена схем в каталоге (без расширения)."""
        return sorted(path.stem for path in self._schema_dir.glob("*.json"))

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Args:
            schema_name: Имя схемы без расширения (например, 'engine_event')

        Raises:
            FileNotFoundError: Если файла схемы нет
            ValueError: Если файл не проходит meta-validation
        """
        cached = self._schemas.get(schema_name)
        if cached is not None:
            return cached

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.is_file():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        schema = json.loads(schema_path.read_text(encoding="utf-8"))

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_path.name}: {e.message}") from e

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER: Optional[SchemaLoader] = None
_COMPILED: Dict[str, Draft202012Validator] = {}


def _default_loader() -> SchemaLoader:
    global _SCHEMA_LOADER
    if _SCHEMA_LOADER is None:
        _SCHEMA_LOADER = SchemaLoader()
    return _SCHEMA_LOADER


def _compiled(schema_name: str) -> Draft202012Validator:
    validator = _COMPILED.get(schema_name)
    if validator is None:
        validator = Draft202012Validator(_default_loader().load_schema(schema_name))
        _COMPILED[schema_name] = validator
    return validator


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Валидатор одного контракта.

    Экземпляры дешёвые: схема и скомпилированный валидатор общие для
    всех экземпляров с одним schema_name.
    """

    schema_name: str = ""

    def __init__(self, schema_name: Optional[str] = None):
        if schema_name is not None:
            self.schema_name = schema_name
        if not self.schema_name:
            raise ValueError("schema_name is required")
        self.validator = _compiled(self.schema_name)
        self.schema = self.validator.schema

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: Первая (наиболее релевантная) ошибка
        """
        error = best_match(self.validator.iter_errors(data))
        if error is not None:
            raise error

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        return self.validator.iter_errors(data)

    def describe_errors(self, data: Dict[str, Any]) -> List[str]:
        """Ошибки в виде 'path: message', отсортированные по пути."""
        errors = sorted(self.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))
        return [
            f"{'/'.join(map(str, error.absolute_path)) or '<root>'}: {error.message}"
            for error in errors
        ]


class EngineEventValidator(ContractValidator):
    """Payload событий движка (EngineEvent.to_payload)."""

    schema_name = "engine_event"


class PoolSnapshotValidator(ContractValidator):
    """Снимок пула (PoolEngine.snapshot)."""

    schema_name = "pool_snapshot"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_engine_event(data: Dict[str, Any]) -> None:
    """
    Raises:
        ValidationError: Если payload не соответствует engine_event.json
    """
    EngineEventValidator().validate(data)


def validate_pool_snapshot(data: Dict[str, Any]) -> None:
    """
    Raises:
        ValidationError: Если снимок не соответствует pool_snapshot.json
    """
    PoolSnapshotValidator().validate(data)
