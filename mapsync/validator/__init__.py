"""Advisory type-compatibility validation."""

from .data_validator import DataValidator, ValidationStatus

__all__ = ["DataValidator", "ValidationStatus"]
