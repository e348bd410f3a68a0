from __future__ import annotations

from decimal import Decimal

from spending_analysis import (
    BankId,
    ColumnMapping,
    ColumnRole,
    CsvDialect,
    EmptyFile,
    ImportResult,
    InvalidFormat,
    MissingColumns,
    RuleSet,
    TransactionBadge,
    import_statement,
    new_user_rule,
)
from spending_analysis.settings import DetectorSettings

SEB_ROWS = [
    "Bokföringsdatum;Valutadatum;Verifikationsnummer;Text;Belopp;Saldo",
    "2024-01-15;2024-01-15;5484381424;NETFLIX COM /24-01-14;-109,00;12 391,00",
    "2024-01-25;2024-01-25;5484381425;LÖN;25 000,00;37 391,00",
    "2024-01-26;2024-01-26;5484381426;SL;-42,00;37 349,00",
    "xx;2024-01-27;5484381427;ICA MAXI;-250,00;37 099,00",
    "2024-02-15;2024-02-15;5484381428;NETFLIX COM /24-02-14;-109,00;36 990,00",
    "2024-03-15;2024-03-15;5484381429;NETFLIX COM /24-03-14;-109,00;36 881,00",
]


def _seb_export() -> bytes:
    return ("\ufeff" + "\r\n".join(SEB_ROWS) + "\r\n").encode("utf-8")


def test_full_import_of_bank_export() -> None:
    result = import_statement(_seb_export(), CsvDialect(decimal_separator=","), bank=BankId.SEB)

    assert isinstance(result, ImportResult)
    assert len(result.transactions) == 5
    assert [(s.row_number, s.reason) for s in result.skipped] == [(4, "unparseable date 'xx'")]
    assert result.mapping.assigned()[ColumnRole.REFERENCE] == 2

    by_desc = {t.description: t for t in result.transactions}
    salary = by_desc["LÖN"]
    assert salary.amount == Decimal("25000.00")
    assert (salary.category_id, salary.subcategory_id) == ("income", "salary")
    assert salary.has_badge(TransactionBadge.INCOME)
    sl = by_desc["SL"]
    assert (sl.category_id, sl.subcategory_id) == ("transportation", "public_transit")
    assert result.transactions[0].reference == "5484381424"

    assert result.categorization.total == 5
    assert result.categorization.uncategorized == 0

    (candidate,) = result.candidates
    assert candidate.recipient_name == "Netflix Com"
    assert candidate.occurrence_count == 3
    assert candidate.category_id == "entertainment"


def test_empty_input() -> None:
    assert isinstance(import_statement(b""), EmptyFile)


def test_malformed_quoting() -> None:
    assert isinstance(import_statement('Datum;Text;Belopp\n2024-01-15;"open;-1\n'), InvalidFormat)


def test_unmappable_columns_report_missing_roles() -> None:
    result = import_statement("Foo;Bar\nabc;xyz\n")

    assert isinstance(result, MissingColumns)
    assert result.missing == (ColumnRole.DATE, ColumnRole.AMOUNT)
    assert result.available == ("Foo", "Bar")
    assert result.message == "Missing required columns: date, amount"


def test_explicit_mapping_overrides_detection() -> None:
    text = "When;What;How much\n2024-01-15;Coffee;-45.00\n"
    mapping = ColumnMapping.from_names(
        ("When", "What", "How much"), date="When", description="What", amount="How much"
    )

    result = import_statement(text, mapping=mapping)

    assert isinstance(result, ImportResult)
    (tx,) = result.transactions
    assert tx.amount == Decimal("-45.00")
    assert result.mapping.resolved_by[ColumnRole.AMOUNT] == "manual"


def test_mapping_outside_table_is_missing_column() -> None:
    result = import_statement(
        "Datum;Text\n2024-01-15;Coffee\n",
        mapping=ColumnMapping(date=0, description=1, amount=5),
    )

    assert isinstance(result, MissingColumns)
    assert result.missing == (ColumnRole.AMOUNT,)


def test_bank_default_delimiter_and_user_rules() -> None:
    text = (
        "Date,Description,Amount\n"
        "2024-01-15,Corner Coffee,-45.00\n"
        "2024-01-16,Corner Coffee,-45.00\n"
    )
    rules = RuleSet.default([new_user_rule("COFFEE", "food_dining", "coffee", priority=95)])

    result = import_statement(
        text,
        bank=BankId.OTHER,
        rules=rules,
        detector_settings=DetectorSettings(min_confidence=100),
    )

    assert isinstance(result, ImportResult)
    assert [t.category_id for t in result.transactions] == ["food_dining", "food_dining"]
    assert result.candidates == []
    assert result.ragged_rows == 0


def test_comma_decimal_amounts_without_dialect() -> None:
    text = "Datum;Text;Belopp\n2024-01-15;ICA MAXI;-250,00\n2024-01-16;SL;-42,50\n"

    result = import_statement(text)

    assert isinstance(result, ImportResult)
    assert result.skipped == ()
    assert [t.amount for t in result.transactions] == [Decimal("-250.00"), Decimal("-42.50")]


def test_bank_id_is_case_insensitive() -> None:
    result = import_statement(_seb_export(), CsvDialect(decimal_separator=","), bank="SEB")

    assert isinstance(result, ImportResult)
    assert result.transactions[0].description == "NETFLIX COM"


def test_unknown_bank_is_invalid_format() -> None:
    result = import_statement("Datum;Text;Belopp\n2024-01-15;ICA;-10\n", bank="Monzo")

    assert isinstance(result, InvalidFormat)
    assert result.message == "Invalid file format: unknown bank 'Monzo'"
