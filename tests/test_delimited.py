from __future__ import annotations

from spending_analysis.errors import EmptyFile, EncodingError, InvalidFormat
from spending_analysis.ingest import parse_delimited
from spending_analysis.models import CsvDialect, ParsedTable
from tests.helpers.factories import dedent


def test_quoted_delimiter_stays_in_one_cell() -> None:
    text = dedent(
        """
        Datum;Text;Belopp
        2024-01-15;"ICA; Maxi";-250,00
        """
    )

    table = parse_delimited(text)

    assert isinstance(table, ParsedTable)
    assert table.headers == ("Datum", "Text", "Belopp")
    assert table.rows == (("2024-01-15", "ICA; Maxi", "-250,00"),)


def test_escaped_quotes_and_embedded_newline_preserved() -> None:
    text = 'Datum;Text\n2024-01-15;"a ""b""\nc"\n'

    table = parse_delimited(text)

    assert isinstance(table, ParsedTable)
    assert table.rows == (("2024-01-15", 'a "b"\nc'),)


def test_empty_and_whitespace_only_input_is_empty_file() -> None:
    assert isinstance(parse_delimited(""), EmptyFile)
    assert isinstance(parse_delimited("  \n\r\n \t"), EmptyFile)
    assert isinstance(parse_delimited(b""), EmptyFile)
    assert isinstance(parse_delimited("\ufeff"), EmptyFile)


def test_byte_order_mark_is_not_part_of_first_header() -> None:
    text = "\ufeffDatum;Text;Belopp\n2024-01-15;SL;-42\n"

    from_str = parse_delimited(text)
    from_bytes = parse_delimited(text.encode("utf-8"))

    assert isinstance(from_str, ParsedTable)
    assert from_str.headers[0] == "Datum"
    assert from_bytes == from_str


def test_line_endings_do_not_change_result() -> None:
    lf = "Datum;Text;Belopp\n2024-01-15;SL;-42\n2024-01-16;ICA;-99\n"
    crlf = lf.replace("\n", "\r\n")

    assert parse_delimited(lf) == parse_delimited(crlf)


def test_unterminated_quote_is_invalid_format() -> None:
    result = parse_delimited('Datum;Text\n2024-01-15;"never closed\n')

    assert isinstance(result, InvalidFormat)
    assert result.kind == "invalid_format"
    assert result.message.startswith("Invalid file format:")


def test_text_after_closing_quote_is_invalid_format() -> None:
    result = parse_delimited('Datum;Text\n2024-01-15;"closed"trailing\n')

    assert isinstance(result, InvalidFormat)


def test_quote_inside_unquoted_field_is_literal() -> None:
    table = parse_delimited('Datum;Text\n2024-01-15;12" pizza\n')

    assert isinstance(table, ParsedTable)
    assert table.rows[0][1] == '12" pizza'


def test_undecodable_bytes_are_encoding_error() -> None:
    result = parse_delimited(b"Datum;Text\n2024-01-15;Caf\xe9\n")

    assert isinstance(result, EncodingError)
    assert result.encoding == "utf-8"
    assert "position" in result.details


def test_unknown_encoding_is_encoding_error() -> None:
    result = parse_delimited(b"Datum;Text\n", CsvDialect(encoding="no-such-codec"))

    assert isinstance(result, EncodingError)
    assert result.details == "unknown encoding"


def test_latin1_bytes_decode_with_matching_dialect() -> None:
    data = "Datum;Text\n2024-01-15;Löneinsättning\n".encode("latin-1")

    table = parse_delimited(data, CsvDialect(encoding="latin-1"))

    assert isinstance(table, ParsedTable)
    assert table.rows[0][1] == "Löneinsättning"


def test_blank_records_dropped_and_ragged_rows_kept() -> None:
    text = dedent(
        """
        Datum;Text;Belopp

        2024-01-15;SL;-42
        ;;
        2024-01-16;ICA
        """
    )

    table = parse_delimited(text)

    assert isinstance(table, ParsedTable)
    assert table.row_count == 2
    assert table.rows[1] == ("2024-01-16", "ICA")
    assert table.ragged_row_count == 1


def test_headerless_dialect_keeps_first_record_as_data() -> None:
    table = parse_delimited("2024-01-15,SL,-42\n", CsvDialect(delimiter=",", has_header=False))

    assert isinstance(table, ParsedTable)
    assert table.headers == ()
    assert table.rows == (("2024-01-15", "SL", "-42"),)
    assert table.column_name(1) == "column_2"


def test_cells_are_not_trimmed() -> None:
    table = parse_delimited("Datum; Text \n2024-01-15;  SL  \n")

    assert isinstance(table, ParsedTable)
    assert table.headers == ("Datum", " Text ")
    assert table.rows[0] == ("2024-01-15", "  SL  ")
    assert table.column_name(1) == "Text"
