"""
Instruction Contracts

Проверка JSON payload'ов инструкций locker'а по JSON Schema (Draft 2020-12)
до построения модели запроса.

Схема инструкции лежит в contracts/schema/<instruction>.json. Инструкции
без схемы (transfer_ownership, close_locker, ...) проверяются только
моделью запроса.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator

import jsonschema
from jsonschema import Draft202012Validator


# Корень проекта (4 уровня вверх от этого файла)
DEFAULT_SCHEMA_DIR = Path(__file__).parent.parent.parent.parent / "contracts" / "schema"


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """Загрузчик схем инструкций с кэшем и meta-validation."""

    def __init__(self, schema_dir: Path = DEFAULT_SCHEMA_DIR):
        if not schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {schema_dir}")
        self.schema_dir = schema_dir
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def path_for(self, instruction: str) -> Path:
        return self.schema_dir / f"{instruction}.json"

    def has_schema(self, instruction: str) -> bool:
        return instruction in self._schemas or self.path_for(instruction).exists()

    def load_schema(self, instruction: str) -> Dict[str, Any]:
        """
        Схема инструкции.

        Raises:
            FileNotFoundError: Схемы для инструкции нет
            ValueError: Схема не проходит meta-validation
        """
        if instruction in self._schemas:
            return self._schemas[instruction]

        path = self.path_for(instruction)
        if not path.exists():
            raise FileNotFoundError(f"Schema not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema for {instruction}: {e.message}") from e

        self._schemas[instruction] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATOR
# =============================================================================


class ContractValidator:
    """Validator одной инструкции."""

    def __init__(self, instruction: str, loader: SchemaLoader = _SCHEMA_LOADER):
        self.instruction = instruction
        self.validator = Draft202012Validator(loader.load_schema(instruction))

    def validate(self, payload: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: Первое нарушение контракта
        """
        self.validator.validate(payload)

    def is_valid(self, payload: Dict[str, Any]) -> bool:
        return self.validator.is_valid(payload)

    def iter_errors(self, payload: Dict[str, Any]) -> Iterator[jsonschema.ValidationError]:
        return self.validator.iter_errors(payload)


_VALIDATORS: Dict[str, ContractValidator] = {}


def contract_for(instruction: str) -> ContractValidator:
    """Кэшированный validator инструкции."""
    validator = _VALIDATORS.get(instruction)
    if validator is None:
        validator = ContractValidator(instruction)
        _VALIDATORS[instruction] = validator
    return validator


def validate_instruction(instruction: str, payload: Dict[str, Any]) -> None:
    """
    Проверка payload'а по схеме инструкции; без схемы — no-op.

    Raises:
        jsonschema.ValidationError: payload нарушает контракт
    """
    if not _SCHEMA_LOADER.has_schema(instruction):
        return
    contract_for(instruction).validate(payload)
