"""
Data Validation Utilities
==========================
Header checks and date parameter validation.

Design Principles:
- Never silently fail - always log issues
- Return structured validation results for data problems
- Raise for request parameters that cannot be served
"""

import re
from datetime import date, datetime
from typing import Dict, List, Any, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from profitflow.models.errors import InvalidDateError, InvalidDateRangeError
from profitflow.utils.constants import ISO_DATE_FORMAT, ISO_DATE_PATTERN
from profitflow.utils.logger import get_logger

logger = get_logger(__name__)

_ISO_DATE_RE = re.compile(ISO_DATE_PATTERN)


@dataclass
class ValidationResult:
    """
    Structured result of a validation operation.

    Attributes
    ----------
    is_valid : bool
        Overall validation status
    errors : List[str]
        Critical issues that prevent processing
    warnings : List[str]
        Non-critical issues to be aware of
    info : Dict[str, Any]
        Additional validation metadata
    """
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "info": self.info
        }


def parse_header(line: str) -> List[str]:
    """Split a header line on commas, dropping quotes and surrounding whitespace."""
    return [cell.replace('"', '').strip() for cell in line.split(',')]


def validate_required_columns(
    headers: Sequence[str],
    required: Sequence[str],
    source: str
) -> ValidationResult:
    """
    Check that every required header is present.

    Parameters
    ----------
    headers : sequence of str
        Header names of the file, in column order
    required : sequence of str
        Header names that must be present
    source : str
        Name of the file kind being validated (for messages)

    Returns
    -------
    ValidationResult
        ``info["missing_columns"]`` lists what is absent, in the order
        given by ``required``
    """
    result = ValidationResult()
    missing = [name for name in required if name not in headers]
    result.info["missing_columns"] = missing
    result.info["column_count"] = len(headers)

    if missing:
        result.add_error(f"Missing required columns in {source}: {missing}")
        logger.error(f"Validation FAILED for {source}: missing {missing}")
    else:
        logger.debug(f"Validation PASSED for {source}")

    return result


def find_column(headers: Sequence[str], candidates: Sequence[str]) -> Optional[int]:
    """Return the index of the first candidate header present, or None."""
    for name in candidates:
        if name in headers:
            return list(headers).index(name)
    return None


def validate_iso_date(value: Any, name: str = "date") -> date:
    """
    Parse a YYYY-MM-DD parameter.

    Raises
    ------
    InvalidDateError
        If the value is empty or not a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not _ISO_DATE_RE.match(str(value)):
        raise InvalidDateError(f"{name} must be a YYYY-MM-DD date, got {value!r}")
    try:
        return datetime.strptime(str(value), ISO_DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateError(f"{name} is not a valid date: {value!r}") from e


def validate_date_range(start: Any, end: Any) -> Tuple[date, date]:
    """
    Validate an inclusive report range.

    Raises
    ------
    InvalidDateError
        If either bound is malformed
    InvalidDateRangeError
        If start is after end; the range is never swapped
    """
    start_date = validate_iso_date(start, "start date")
    end_date = validate_iso_date(end, "end date")
    if start_date > end_date:
        logger.warning(f"Rejected date range {start_date} > {end_date}")
        raise InvalidDateRangeError(start_date.isoformat(), end_date.isoformat())
    return start_date, end_date
