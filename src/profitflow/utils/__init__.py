"""
Utils Package
=============
Utility functions for ProfitFlow.

Modules:
- logger: Centralized logging configuration
- validators: Header and date validation utilities
- constants: Ledger key conventions
"""

from .logger import get_logger, configure_package_logging, LogContext
from .validators import ValidationResult, validate_date_range, validate_iso_date

__all__ = [
    'get_logger',
    'configure_package_logging',
    'LogContext',
    'ValidationResult',
    'validate_date_range',
    'validate_iso_date',
]
