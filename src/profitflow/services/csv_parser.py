"""
Delimited Text Parsing
=======================
Tolerant line parser for the shop's CSV exports, plus the cell-level
parsers for money amounts and product lists.

The exports quote inconsistently, so this is deliberately looser than
RFC 4180:
- fields may be wrapped in single or double quotes
- inside quotes, the quote character is escaped with a backslash
- bare fields may contain inner whitespace but no commas or quotes
- a trailing comma yields an empty last field

A line that does not fit this grammar is rejected as a whole (None);
callers skip it and carry on.
"""

import re
from typing import List, Optional, Tuple

from profitflow.utils.constants import PRODUCT_QUANTITY_SEPARATOR, PRODUCT_TOKEN_SEPARATOR

_SINGLE_QUOTED = r"'[^'\\]*(?:\\[\S\s][^'\\]*)*'"
_DOUBLE_QUOTED = r'"[^"\\]*(?:\\[\S\s][^"\\]*)*"'
_BARE = r"""[^,'"\s\\]*(?:\s+[^,'"\s\\]+)*"""
_FIELD = f"(?:{_SINGLE_QUOTED}|{_DOUBLE_QUOTED}|{_BARE})"

_LINE_RE = re.compile(rf"^\s*{_FIELD}\s*(?:,\s*{_FIELD}\s*)*\Z")
_VALUE_RE = re.compile(
    r"(?!\s*\Z)\s*"
    r"(?:'([^'\\]*(?:\\[\S\s][^'\\]*)*)'"
    r'|"([^"\\]*(?:\\[\S\s][^"\\]*)*)"'
    r"""|([^,'"\s\\]*(?:\s+[^,'"\s\\]+)*))"""
    r"\s*(?:,|\Z)"
)
_TRAILING_COMMA_RE = re.compile(r",\s*\Z")

_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class CsvRecordParser:
    """
    Single-line record parser.

    Usage:
        parser = CsvRecordParser()
        parser.parse_line('1,"Mug, blue",3')   # ['1', 'Mug, blue', '3']
    """

    def parse_line(self, line: str) -> Optional[List[str]]:
        """Fields of one line, or None when the line is malformed."""
        if not _LINE_RE.match(line):
            return None

        fields = []
        for match in _VALUE_RE.finditer(line):
            single, double, bare = match.groups()
            if single is not None:
                fields.append(single.replace("\\'", "'"))
            elif double is not None:
                fields.append(double.replace('\\"', '"'))
            elif bare is not None:
                fields.append(bare)

        if _TRAILING_COMMA_RE.search(line):
            fields.append('')
        return fields

    @staticmethod
    def split_lines(text: str) -> List[str]:
        """Split on newlines; carriage returns are absorbed by the line grammar."""
        return text.split('\n')


def parse_number(text: Optional[str], default: float = 0.0) -> float:
    """
    Leading decimal number of ``text``.

    Trailing junk is ignored ("12.5 PLN" -> 12.5); no number at all, or a
    zero, gives ``default``.
    """
    if not text:
        return default
    match = _LEADING_FLOAT_RE.match(text)
    if not match:
        return default
    value = float(match.group(1))
    return value or default


def parse_int(text: Optional[str]) -> Optional[int]:
    """Leading integer of ``text``, None when there is none."""
    if not text:
        return None
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else None


def parse_money(cell: Optional[str], currency_suffix: str) -> float:
    """
    Parse an amount such as ``"1234,50\\u00a0zł"``.

    The currency suffix is removed and decimal commas become dots.
    Unparseable amounts are 0.
    """
    if not cell:
        return 0.0
    cleaned = cell.replace(currency_suffix, '').replace(',', '.').strip()
    return parse_number(cleaned)


def parse_product_list(summary: Optional[str]) -> List[Tuple[int, str]]:
    """
    Parse a product list cell into (quantity, name) pairs.

    The cell holds ``"<qty> × <name>"`` tokens joined by ``", "``.
    Tokens without exactly one ``"× "`` or without a leading integer are
    ignored.
    """
    if not summary:
        return []

    items = []
    for token in summary.split(PRODUCT_TOKEN_SEPARATOR):
        parts = token.split(PRODUCT_QUANTITY_SEPARATOR)
        if len(parts) != 2:
            continue
        quantity = parse_int(parts[0])
        if quantity is None:
            continue
        items.append((quantity, parts[1].strip()))
    return items
