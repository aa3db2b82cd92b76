"""Tests for payroll book / liquidation reconciliation."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import uuid4

from contapyme_engine.calculators.reconciliation import LiquidationIndex, ReconciliationResolver
from contapyme_engine.calculators.types import (
    BookDetailSnapshot,
    BookSnapshot,
    LiquidationSnapshot,
    ReconciliationAuthority,
)
from contapyme_engine.errors import PartialDataWarning

COMPANY_ID = uuid4()
PERIOD = "2024-03"


def make_detail(rut: str, haberes: str, descuentos: str, **kwargs) -> BookDetailSnapshot:
    return BookDetailSnapshot(
        employee_rut=rut,
        total_haberes=Decimal(haberes),
        total_descuentos=Decimal(descuentos),
        sueldo_liquido=Decimal(haberes) - Decimal(descuentos),
        **kwargs,
    )


def make_book(*details: BookDetailSnapshot) -> BookSnapshot:
    return BookSnapshot.from_details(COMPANY_ID, PERIOD, list(details))


def make_liquidation(rut: str, **amounts: str) -> LiquidationSnapshot:
    return LiquidationSnapshot(
        employee_rut=rut,
        period=PERIOD,
        **{name: Decimal(value) for name, value in amounts.items()},
    )


class TestResidualDeductions:
    """other_deductions absorbs what the liquidation does not itemize."""

    def test_known_scenario(self):
        """6,740,000 haberes / 1,715,000 descuentos with 1,325,000 itemized."""
        book = make_book(make_detail("12.345.678-5", "6740000", "1715000"))
        liquidation = make_liquidation(
            "12345678-5",
            afp_amount="520000",
            health_amount="364000",
            unemployment_amount="156000",
            income_tax_amount="285000",
        )

        ledger = ReconciliationResolver().reconcile(book, [liquidation])

        row = ledger.rows[0]
        assert row.other_deductions == Decimal("390000")
        assert row.total_descuentos == Decimal("1715000")
        assert row.itemized_deductions == Decimal("1715000")
        assert row.deductions_delta == Decimal("390000")
        assert row.sueldo_liquido == Decimal("5025000")
        assert row.has_liquidation is True
        assert ledger.warning is None

    def test_missing_liquidation_puts_everything_in_residual(self):
        book = make_book(make_detail("12.345.678-5", "6740000", "1715000"))

        ledger = ReconciliationResolver().reconcile(book, [])

        row = ledger.rows[0]
        assert row.other_deductions == row.total_descuentos == Decimal("1715000")
        assert row.afp_amount == Decimal("0")
        assert row.has_liquidation is False
        assert isinstance(ledger.warning, PartialDataWarning)
        assert ledger.warning.missing_ruts == ("12345678-5",)

    def test_rut_formats_are_joined(self):
        book = make_book(make_detail("12.345.678-k", "1000000", "200000"))
        liquidation = make_liquidation("12345678K", afp_amount="100000")

        row = ReconciliationResolver().reconcile(book, [liquidation]).rows[0]

        assert row.employee_rut == "12345678-K"
        assert row.afp_amount == Decimal("100000")
        assert row.other_deductions == Decimal("100000")

    def test_excess_is_clamped_and_exposed(self, caplog):
        book = make_book(make_detail("12.345.678-5", "6740000", "1715000"))
        liquidation = make_liquidation(
            "12345678-5",
            afp_amount="1000000",
            health_amount="500000",
            income_tax_amount="500000",
        )

        with caplog.at_level(logging.INFO):
            ledger = ReconciliationResolver().reconcile(book, [liquidation])

        row = ledger.rows[0]
        assert row.other_deductions == Decimal("0")
        assert row.deductions_delta == Decimal("-285000")
        assert row.has_excess is True
        assert row.total_descuentos == Decimal("1715000")
        assert ledger.excess_rows == [row]
        assert ledger.warning is not None
        assert ledger.warning.excess_ruts == ("12345678-5",)
        assert any("exceed" in record.getMessage() for record in caplog.records)

    def test_excess_keeps_book_totals_in_footer(self):
        book = make_book(
            make_detail("12.345.678-5", "1000000", "100000"),
            make_detail("9.876.543-3", "900000", "150000"),
        )
        liquidation = make_liquidation("12345678-5", afp_amount="300000")

        ledger = ReconciliationResolver().reconcile(book, [liquidation])

        assert ledger.rows[0].has_excess
        assert ledger.footer_matches_book()


class TestResidualHaberes:
    """other_haberes follows the same rule with book and liquidation items."""

    def test_haberes_itemization(self):
        book = make_book(
            make_detail(
                "12.345.678-5",
                "800000",
                "150000",
                sueldo_base=Decimal("500000"),
                colacion=Decimal("50000"),
            )
        )
        liquidation = make_liquidation(
            "12345678-5",
            bonuses="100000",
            gratification="50000",
            legal_gratification_art50="25000",
        )

        row = ReconciliationResolver().reconcile(book, [liquidation]).rows[0]

        assert row.gratification == Decimal("75000")
        assert row.other_haberes == Decimal("75000")
        assert row.itemized_haberes == row.total_haberes == Decimal("800000")
        assert row.haberes_delta == Decimal("75000")


class TestLedgerTotals:
    """Footer totals and row ordering."""

    def test_footer_equals_book_header(self):
        book = make_book(
            make_detail("12.345.678-5", "6740000", "1715000"),
            make_detail("9.876.543-3", "1180000", "268000"),
            make_detail("15.111.222-K", "790000", "171000"),
        )
        liquidations = [
            make_liquidation("12345678-5", afp_amount="520000", health_amount="364000"),
            make_liquidation("9876543-3", afp_amount="104000"),
        ]

        ledger = ReconciliationResolver().reconcile(book, liquidations)

        assert ledger.totals.employees == 3
        assert ledger.totals.total_haberes == book.total_haberes == Decimal("8710000")
        assert ledger.totals.total_descuentos == book.total_descuentos == Decimal("2154000")
        assert ledger.totals.sueldo_liquido == book.total_liquido == Decimal("6556000")
        assert ledger.footer_matches_book()
        assert ledger.totals.get("afp_amount") == Decimal("624000")

    def test_rows_follow_book_order(self):
        ruts = ["15.111.222-K", "12.345.678-5", "9.876.543-3"]
        book = make_book(*(make_detail(rut, "100000", "10000") for rut in ruts))

        ledger = ReconciliationResolver().reconcile(book, [])

        assert [row.employee_rut for row in ledger.rows] == [
            "15111222-K",
            "12345678-5",
            "9876543-3",
        ]

    def test_reconcile_is_idempotent(self):
        book = make_book(
            make_detail("12.345.678-5", "6740000", "1715000"),
            make_detail("9.876.543-3", "1180000", "268000"),
        )
        liquidations = [make_liquidation("12345678-5", afp_amount="520000")]
        resolver = ReconciliationResolver()

        first = resolver.reconcile(book, liquidations)
        second = resolver.reconcile(book, liquidations)

        assert first.rows == second.rows
        assert first.totals.to_dict() == second.totals.to_dict()

    def test_header_mismatch_is_logged(self, caplog):
        detail = make_detail("12.345.678-5", "1000000", "100000")
        book = BookSnapshot(
            company_id=COMPANY_ID,
            period=PERIOD,
            total_employees=1,
            total_haberes=Decimal("1200000"),
            total_descuentos=Decimal("100000"),
            total_liquido=Decimal("1100000"),
            details=(detail,),
        )

        with caplog.at_level(logging.ERROR):
            ledger = ReconciliationResolver().reconcile(book, [])

        assert not ledger.footer_matches_book()
        assert ledger.rows[0].total_haberes == Decimal("1000000")
        assert any(record.levelno == logging.ERROR for record in caplog.records)


class TestPartialData:
    """Duplicate and orphan liquidations are reported, not raised."""

    def test_duplicate_liquidation_first_wins(self):
        book = make_book(make_detail("12.345.678-5", "1000000", "200000"))
        liquidations = [
            make_liquidation("12345678-5", afp_amount="100000"),
            make_liquidation("12.345.678-5", afp_amount="999"),
        ]

        ledger = ReconciliationResolver().reconcile(book, liquidations)

        assert ledger.rows[0].afp_amount == Decimal("100000")
        assert ledger.warning is not None
        assert ledger.warning.duplicate_ruts == ("12345678-5",)

    def test_orphan_liquidation(self):
        book = make_book(make_detail("12.345.678-5", "1000000", "200000"))
        liquidations = [
            make_liquidation("12345678-5", afp_amount="100000"),
            make_liquidation("7.654.321-6", afp_amount="80000"),
        ]

        ledger = ReconciliationResolver().reconcile(book, liquidations)

        assert len(ledger.rows) == 1
        assert ledger.warning.orphan_ruts == ("7654321-6",)
        assert ledger.warning.missing_ruts == ()

    def test_warning_is_logged_not_raised(self, caplog):
        book = make_book(make_detail("12.345.678-5", "1000000", "200000"))

        with caplog.at_level(logging.WARNING):
            ledger = ReconciliationResolver().reconcile(book, [])

        assert "1 employee(s) without liquidation" in str(ledger.warning)
        assert any(record.levelno == logging.WARNING for record in caplog.records)
        assert ledger.warning.to_dict()["missing_ruts"] == ["12345678-5"]

    def test_liquidation_index(self):
        index = LiquidationIndex.build(
            [
                make_liquidation("12345678-5"),
                make_liquidation("12.345.678-5"),
                make_liquidation("9876543-3"),
            ]
        )

        assert set(index.by_rut) == {"12345678-5", "9876543-3"}
        assert index.duplicate_ruts == ["12345678-5"]
        assert index.get("9.876.543-3") is not None
        assert index.get("1-9") is None


class TestLiquidationAuthority:
    """Totals taken from the liquidation when it is the authority."""

    def test_liquidation_totals_are_used(self):
        book = make_book(make_detail("12.345.678-5", "1700000", "380000"))
        liquidation = make_liquidation(
            "12345678-5",
            afp_amount="180000",
            health_amount="126000",
            total_gross_income="1800000",
            total_deductions="400000",
            net_salary="1400000",
        )

        ledger = ReconciliationResolver(ReconciliationAuthority.LIQUIDATION).reconcile(
            book, [liquidation]
        )

        row = ledger.rows[0]
        assert ledger.authority == ReconciliationAuthority.LIQUIDATION
        assert row.total_haberes == Decimal("1800000")
        assert row.total_descuentos == Decimal("400000")
        assert row.sueldo_liquido == Decimal("1400000")
        assert row.other_deductions == Decimal("94000")
        assert not ledger.footer_matches_book()

    def test_net_salary_derived_when_missing(self):
        book = make_book(make_detail("12.345.678-5", "1700000", "380000"))
        liquidation = make_liquidation(
            "12345678-5", total_gross_income="1800000", total_deductions="400000"
        )

        row = ReconciliationResolver("liquidation").reconcile(book, [liquidation]).rows[0]

        assert row.sueldo_liquido == Decimal("1400000")

    def test_falls_back_to_book_without_liquidation_totals(self):
        book = make_book(make_detail("12.345.678-5", "1700000", "380000"))
        liquidation = make_liquidation("12345678-5", afp_amount="180000")

        row = ReconciliationResolver(ReconciliationAuthority.LIQUIDATION).reconcile(
            book, [liquidation]
        ).rows[0]

        assert row.total_haberes == Decimal("1700000")
        assert row.total_descuentos == Decimal("380000")
        assert row.other_deductions == Decimal("200000")
