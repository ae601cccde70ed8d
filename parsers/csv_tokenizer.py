"""
CSV tokenizer for switch collection uploads.

Turns raw CSV text into a header row and data rows. This is a
deliberately small scanner, not an RFC 4180 parser:

- Lines are physical lines; whitespace-only lines are dropped.
- A double quote always toggles the in-quotes flag. There is no
  escaping, so '""' inside a quoted field simply toggles twice.
- A comma separates fields only outside quotes.
- Every field is trimmed after extraction.

Rows may have fewer (or more) cells than the header. Callers read
cells through TokenizedCSV.cell(), which treats missing trailing
cells as empty strings.
"""

import re
from dataclasses import dataclass, field
from typing import Union
import structlog

from exceptions import CSVParseError

logger = structlog.get_logger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\n|\r")
_BOM = "\ufeff"


@dataclass
class TokenizedCSV:
    """Header row plus data rows of a tokenized CSV file."""
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        """Number of header columns."""
        return len(self.header)

    @property
    def short_row_count(self) -> int:
        """Rows with fewer cells than the header (padded on read)."""
        return sum(1 for row in self.rows if len(row) < len(self.header))

    @staticmethod
    def cell(row: list[str], index: int) -> str:
        """Cell at index, or "" when the row is shorter."""
        if index < len(row):
            return row[index]
        return ""


def tokenize_line(line: str) -> list[str]:
    """
    Split one physical line into trimmed fields.

    Args:
        line: A single CSV line without its line break

    Returns:
        List of fields, at least one (possibly empty)
    """
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    cells.append("".join(current).strip())
    return cells


def tokenize(text: Union[str, bytes]) -> TokenizedCSV:
    """
    Tokenize CSV text into header and data rows.

    Args:
        text: File content; bytes are decoded as UTF-8

    Returns:
        TokenizedCSV with the first non-blank line as header

    Raises:
        CSVParseError: If there is no non-blank line to use as header
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CSVParseError(
                "File is not valid UTF-8 text",
                details={"position": e.start}
            ) from e

    if text.startswith(_BOM):
        text = text[len(_BOM):]

    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]

    if not lines:
        raise CSVParseError("CSV file is empty")

    header = tokenize_line(lines[0])
    rows = [tokenize_line(line) for line in lines[1:]]

    result = TokenizedCSV(header=header, rows=rows)

    logger.info(
        "csv_tokenized",
        columns=result.column_count,
        rows=len(rows),
        short_rows=result.short_row_count
    )

    return result
