"""Validation package."""

from balance_tracker.validation.validator import MutationValidator

__all__ = ["MutationValidator"]
