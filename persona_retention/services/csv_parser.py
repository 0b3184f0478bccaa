"""
CSV Parser Service

Turns raw CSV text into header-keyed row mappings. Input comes from pasted
text or uploaded survey exports, so the parser is deliberately forgiving:

- A leading byte-order mark is stripped.
- The delimiter (comma, semicolon or tab) is detected once from the first line.
- Double-quoted fields may contain delimiters, line breaks and doubled quotes.
- Both \\r\\n and \\n end a row; a bare \\r outside quotes is ignored.
- Rows are mapped onto the header positionally without column-count
  validation: short rows get None for the missing cells, extra cells are
  dropped.
- Rows whose values are all blank are dropped, so a trailing newline never
  produces a phantom row.

pandas.read_csv is not used here because it cannot express the first-line
delimiter heuristic together with ragged rows mapped positionally onto the
header; the output is plain dicts that the normalizer consumes row by row.
"""

import logging
import re
from typing import Dict, List, Optional

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

BOM: str = '\ufeff'

COMMA: str = ','
SEMICOLON: str = ';'
TAB: str = '\t'

QUOTE: str = '"'

# A parsed row: header cell -> raw value (None when the row was too short)
RawRow = Dict[str, Optional[str]]

_FIRST_LINE_SPLIT = re.compile(r'\r?\n')


class CsvParseError(ValueError):
    """Raised when the input handed to the parser is not CSV text."""


# =============================================================================
# DELIMITER DETECTION
# =============================================================================

def strip_bom(text: str) -> str:
    """Remove a single leading byte-order mark, if present."""
    if text.startswith(BOM):
        return text[len(BOM):]
    return text


def detect_delimiter(first_line: str) -> str:
    """
    Pick the field delimiter from the header line.

    Semicolon wins only when it strictly outnumbers commas and is at least as
    frequent as tabs. Tab wins only when it strictly outnumbers both. Anything
    else, including ties and an empty line, falls back to comma.

    Args:
        first_line: The first line of the input (BOM allowed)

    Returns:
        One of ',', ';' or '\\t'
    """
    line = strip_bom(first_line or '')
    commas = line.count(COMMA)
    semis = line.count(SEMICOLON)
    tabs = line.count(TAB)

    if semis > commas and semis >= tabs:
        return SEMICOLON
    if tabs > commas and tabs > semis:
        return TAB
    return COMMA


# =============================================================================
# TOKENIZER
# =============================================================================

def tokenize(text: str, delimiter: str) -> List[List[str]]:
    """
    Split CSV text into rows of raw string fields.

    A quote character switches into quoted mode wherever it appears in a
    field; inside quotes a doubled quote is a literal quote and a single quote
    switches back. The final row is kept unless it is a single empty field.

    Args:
        text: CSV text without a BOM
        delimiter: Field delimiter from detect_delimiter()

    Returns:
        List of rows, each a list of field strings
    """
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quotes = False

    i = 0
    length = len(text)
    while i < length:
        c = text[i]

        if in_quotes:
            if c == QUOTE:
                if i + 1 < length and text[i + 1] == QUOTE:
                    field.append(QUOTE)
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(c)
            i += 1
            continue

        if c == QUOTE:
            in_quotes = True
        elif c == delimiter:
            row.append(''.join(field))
            field = []
        elif c == '\n':
            row.append(''.join(field))
            field = []
            rows.append(row)
            row = []
        elif c != '\r':
            field.append(c)
        i += 1

    row.append(''.join(field))
    if len(row) > 1 or row[0] != '':
        rows.append(row)

    return rows


# =============================================================================
# PARSER
# =============================================================================

def _is_blank(value: Optional[str]) -> bool:
    return (value or '').strip() == ''


def parse_csv(text: Optional[str]) -> List[RawRow]:
    """
    Parse CSV text into a list of header-keyed rows.

    Args:
        text: Raw CSV text. None is treated as empty input.

    Returns:
        List of row mappings. Empty when there is no usable header.

    Raises:
        CsvParseError: If text is not a string (e.g. undecoded bytes)
    """
    if text is None:
        text = ''
    if not isinstance(text, str):
        raise CsvParseError(f"Expected CSV text, got {type(text).__name__}")

    raw = strip_bom(text)
    first_line = _FIRST_LINE_SPLIT.split(raw, maxsplit=1)[0]
    delimiter = detect_delimiter(first_line)

    table = tokenize(raw, delimiter)
    if not table:
        return []

    header = [(cell or '').strip() for cell in table[0]]
    if not header or all(not cell for cell in header):
        return []

    out: List[RawRow] = []
    for fields in table[1:]:
        mapped: RawRow = {}
        for index, name in enumerate(header):
            mapped[name] = fields[index] if index < len(fields) else None
        if all(_is_blank(value) for value in mapped.values()):
            continue
        out.append(mapped)

    logger.debug(
        f"Parsed {len(out)} rows with {len(header)} columns "
        f"(delimiter={delimiter!r})"
    )
    return out


__all__ = [
    'RawRow',
    'CsvParseError',
    'strip_bom',
    'detect_delimiter',
    'tokenize',
    'parse_csv',
]
