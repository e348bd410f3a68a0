"""Batch-fatal import outcomes.

These are returned, not raised: a parse or import either yields its success
value or exactly one of the variants below. Callers dispatch on the type (or
on the ``kind`` discriminator when serializing).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .models import ColumnRole


@dataclass(frozen=True, slots=True)
class EmptyFile:
    kind: Literal["empty_file"] = field(default="empty_file", init=False)
    message: str = "The file contains no data"


@dataclass(frozen=True, slots=True)
class InvalidFormat:
    details: str
    kind: Literal["invalid_format"] = field(default="invalid_format", init=False)

    @property
    def message(self) -> str:
        return f"Invalid file format: {self.details}"


@dataclass(frozen=True, slots=True)
class EncodingError:
    encoding: str
    details: str = ""
    kind: Literal["encoding_error"] = field(default="encoding_error", init=False)

    @property
    def message(self) -> str:
        base = f"Could not decode file as {self.encoding}"
        return f"{base}: {self.details}" if self.details else base


@dataclass(frozen=True, slots=True)
class MissingColumns:
    """Required roles could not be mapped; ``available`` lists header names."""

    missing: tuple[ColumnRole, ...]
    available: tuple[str, ...] = ()
    kind: Literal["missing_columns"] = field(default="missing_columns", init=False)

    @property
    def message(self) -> str:
        names = ", ".join(r.value for r in self.missing)
        return f"Missing required columns: {names}"


type ParseError = EmptyFile | InvalidFormat | EncodingError
"""Failures of ``parse_delimited``."""

type ImportFailure = ParseError | MissingColumns
"""Failures of ``import_statement``."""


__all__ = [
    "EmptyFile",
    "EncodingError",
    "ImportFailure",
    "InvalidFormat",
    "MissingColumns",
    "ParseError",
]
