"""
Contract Validation Module

JSON Schema контракты payload'ов инструкций locker'а.
"""

from .validators import (
    ContractValidator,
    SchemaLoader,
    contract_for,
    validate_instruction,
)

__all__ = [
    "SchemaLoader",
    "ContractValidator",
    "contract_for",
    "validate_instruction",
]
