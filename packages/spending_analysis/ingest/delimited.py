"""Read a delimited-text bank export into a ``ParsedTable``.

The stdlib ``csv`` reader does the record splitting in ``strict`` mode so that
malformed quoting surfaces as an error instead of silently producing shifted
columns. Cells are returned exactly as read (no trimming); interpretation is
left to the column classifier and the normalizer.
"""

from __future__ import annotations

import csv
import io

from ..errors import EmptyFile, EncodingError, InvalidFormat
from ..logging_setup import get_logger
from ..models import DEFAULT_DIALECT, CsvDialect, ParsedTable

logger = get_logger("spending_analysis.ingest.delimited")

_BOM = "\ufeff"


def decode_content(content: str | bytes, encoding: str) -> str | EncodingError:
    """Return ``content`` as text, decoding bytes with ``encoding``."""

    if isinstance(content, str):
        return content
    try:
        return content.decode(encoding)
    except LookupError:
        return EncodingError(encoding=encoding, details="unknown encoding")
    except UnicodeDecodeError as exc:
        return EncodingError(encoding=encoding, details=f"invalid byte at position {exc.start}")


def _is_blank(record: list[str]) -> bool:
    return all(not cell.strip() for cell in record)


def parse_delimited(
    content: str | bytes, dialect: CsvDialect | None = None
) -> ParsedTable | EmptyFile | InvalidFormat | EncodingError:
    """Split ``content`` into header and data rows.

    Returns ``EmptyFile`` when nothing but whitespace (or a BOM) is present,
    ``EncodingError`` when bytes cannot be decoded and ``InvalidFormat`` when
    the quoting is malformed. Blank records are dropped; rows of unequal
    length are kept as-is.
    """

    dialect = dialect or DEFAULT_DIALECT
    text = decode_content(content, dialect.encoding)
    if isinstance(text, EncodingError):
        logger.info("decode failed (%s): %s", text.encoding, text.details)
        return text

    if text.startswith(_BOM):
        text = text[len(_BOM) :]
    if not text.strip():
        return EmptyFile()

    # newline="" keeps quoted CR/LF inside fields verbatim
    reader = csv.reader(
        io.StringIO(text, newline=""),
        delimiter=dialect.delimiter,
        quotechar='"',
        doublequote=True,
        strict=True,
    )
    records: list[tuple[str, ...]] = []
    try:
        for record in reader:
            if not record or _is_blank(record):
                continue
            records.append(tuple(record))
    except csv.Error as exc:
        logger.info("malformed input near line %d: %s", reader.line_num, exc)
        return InvalidFormat(details=f"line {reader.line_num}: {exc}")

    if not records:
        return EmptyFile()

    if dialect.has_header:
        headers, rows = records[0], tuple(records[1:])
    else:
        headers, rows = (), tuple(records)

    table = ParsedTable(headers=headers, rows=rows, dialect=dialect)
    ragged = table.ragged_row_count
    if ragged:
        logger.debug("%d row(s) differ from the table width %d", ragged, table.width)
    logger.info("parsed %d data row(s), %d column(s)", table.row_count, table.width)
    return table


__all__ = ["decode_content", "parse_delimited"]
