"""Validation package."""

from pennypincher.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
