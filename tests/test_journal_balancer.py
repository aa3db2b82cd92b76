"""Tests for RCV analysis to journal entry conversion."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from contapyme_engine.calculators.journal_balancer import (
    Account,
    AccountMap,
    JournalBalancer,
    Side,
)
from contapyme_engine.calculators.types import (
    JournalEntryCandidate,
    JournalEntryStatus,
    JournalLine,
    RCVAnalysis,
    RCVEntitySummary,
    RegisterType,
)
from contapyme_engine.errors import ImmutableEntryError, UnbalancedEntryError

PERIOD = "2024-03"


def purchase_analysis(calculado: str = "8540000", **kwargs) -> RCVAnalysis:
    values = {
        "register_type": RegisterType.PURCHASE,
        "monto_exento_global": Decimal("0"),
        "monto_neto_global": Decimal("7176471"),
        "monto_iva_global": Decimal("1363529"),
        "monto_calculado_global": Decimal(calculado),
        "total_transacciones": 42,
    }
    values.update(kwargs)
    return RCVAnalysis(**values)


def lines_by_account(entry: JournalEntryCandidate) -> dict[str, JournalLine]:
    return {line.account_name: line for line in entry.lines}


class TestPurchaseEntry:
    """Purchases register: expenses and IVA credit against suppliers."""

    def test_balanced_scenario(self):
        entry = JournalBalancer().build_entry(purchase_analysis(), PERIOD)

        lines = lines_by_account(entry)
        assert len(entry.lines) == 3
        assert lines["Compras"].debit_amount == Decimal("7176471")
        assert lines["IVA Crédito Fiscal"].debit_amount == Decimal("1363529")
        assert lines["Proveedores"].credit_amount == Decimal("8540000")
        assert entry.total_debit == entry.total_credit == Decimal("8540000")
        assert entry.is_balanced
        assert entry.status == JournalEntryStatus.PRELIMINARY

    def test_description_and_source(self):
        entry = JournalBalancer().build_entry(purchase_analysis(), PERIOD, ledger_id="rcv-123")

        assert entry.description == "Centralización RCV Compras período 2024-03"
        assert entry.source_type == "rcv_purchase"
        assert entry.ledger_id == "rcv-123"
        assert entry.period == PERIOD
        assert "42 documentos" in lines_by_account(entry)["Compras"].description

    def test_zero_exempt_amount_has_no_line(self):
        entry = JournalBalancer().build_entry(purchase_analysis(), PERIOD)

        assert "Compras exentas" not in lines_by_account(entry)
        assert all(line.debit_amount or line.credit_amount for line in entry.lines)

    def test_exempt_amount_is_debited(self):
        analysis = purchase_analysis(
            calculado="8640000", monto_exento_global=Decimal("100000")
        )

        entry = JournalBalancer().build_entry(analysis, PERIOD)

        assert lines_by_account(entry)["Compras exentas"].debit_amount == Decimal("100000")
        assert entry.is_balanced

    def test_injected_decomposition_error_is_unbalanced(self, caplog):
        with caplog.at_level(logging.WARNING):
            entry = JournalBalancer().build_entry(purchase_analysis("8400000"), PERIOD)

        check = JournalBalancer.check_balance(entry)
        assert not entry.is_balanced
        assert check.total_debit == Decimal("8540000")
        assert check.total_credit == Decimal("8400000")
        assert check.difference == Decimal("140000")
        assert any("unbalanced" in record.getMessage() for record in caplog.records)

    def test_ensure_balanced_raises_with_entry(self):
        entry = JournalBalancer().build_entry(purchase_analysis("8400000"), PERIOD)

        with pytest.raises(UnbalancedEntryError) as exc_info:
            JournalBalancer.ensure_balanced(entry)

        assert exc_info.value.entry is entry
        assert exc_info.value.difference == Decimal("140000")
        assert entry.status == JournalEntryStatus.PRELIMINARY

    def test_ensure_balanced_accepts_balanced_entry(self):
        entry = JournalBalancer().build_entry(purchase_analysis(), PERIOD)

        JournalBalancer.ensure_balanced(entry)


class TestSalesEntry:
    """Sales register: receivables against revenue and IVA debit."""

    def test_sales_sides(self):
        analysis = RCVAnalysis(
            register_type=RegisterType.SALES,
            monto_exento_global=Decimal("250000"),
            monto_neto_global=Decimal("4000000"),
            monto_iva_global=Decimal("760000"),
            monto_calculado_global=Decimal("5010000"),
        )

        entry = JournalBalancer().build_entry(analysis, PERIOD)

        lines = lines_by_account(entry)
        assert lines["Clientes"].debit_amount == Decimal("5010000")
        assert lines["Ventas"].credit_amount == Decimal("4000000")
        assert lines["Ventas exentas"].credit_amount == Decimal("250000")
        assert lines["IVA Débito Fiscal"].credit_amount == Decimal("760000")
        assert entry.source_type == "rcv_sales"
        assert entry.description == "Centralización RCV Ventas período 2024-03"
        assert entry.is_balanced


class TestEntityDetail:
    """Counterpart split per supplier."""

    def test_one_counterpart_line_per_entity(self):
        analysis = purchase_analysis(
            entities=(
                RCVEntitySummary(
                    rut="76.543.210-K",
                    razon_social="Distribuidora Sur Ltda",
                    monto_calculado=Decimal("5000000"),
                ),
                RCVEntitySummary(
                    rut="77.111.222-3",
                    razon_social="Servicios Norte SpA",
                    monto_calculado=Decimal("3540000"),
                ),
            )
        )

        entry = JournalBalancer().build_entry(analysis, PERIOD, detail_by_entity=True)

        counterpart = [line for line in entry.lines if line.account_name == "Proveedores"]
        assert [line.credit_amount for line in counterpart] == [
            Decimal("5000000"),
            Decimal("3540000"),
        ]
        assert counterpart[0].description == "Distribuidora Sur Ltda (76.543.210-K)"
        assert entry.is_balanced

    def test_entity_totals_not_matching_global_are_unbalanced(self):
        analysis = purchase_analysis(
            entities=(
                RCVEntitySummary(
                    rut="76.543.210-K",
                    razon_social="Distribuidora Sur Ltda",
                    monto_calculado=Decimal("5000000"),
                ),
            )
        )

        entry = JournalBalancer().build_entry(analysis, PERIOD, detail_by_entity=True)

        assert not entry.is_balanced

    def test_without_entities_falls_back_to_global_line(self):
        entry = JournalBalancer().build_entry(purchase_analysis(), PERIOD, detail_by_entity=True)

        assert lines_by_account(entry)["Proveedores"].credit_amount == Decimal("8540000")


class TestNegativeAmounts:
    """Credit notes dominating the period flip sides."""

    def test_negative_amounts_move_to_opposite_side(self):
        analysis = RCVAnalysis(
            register_type=RegisterType.PURCHASE,
            monto_exento_global=Decimal("0"),
            monto_neto_global=Decimal("-100000"),
            monto_iva_global=Decimal("-19000"),
            monto_calculado_global=Decimal("-119000"),
        )

        entry = JournalBalancer().build_entry(analysis, PERIOD)

        lines = lines_by_account(entry)
        assert lines["Compras"].credit_amount == Decimal("100000")
        assert lines["IVA Crédito Fiscal"].credit_amount == Decimal("19000")
        assert lines["Proveedores"].debit_amount == Decimal("119000")
        assert entry.is_balanced

    def test_side_opposite(self):
        assert Side.DEBIT.opposite is Side.CREDIT
        assert Side.CREDIT.opposite is Side.DEBIT


class TestAccountMapOverride:
    def test_custom_accounts(self):
        accounts = AccountMap(accounts_payable=Account("2.1.1.010", "Proveedores nacionales"))

        entry = JournalBalancer(accounts).build_entry(purchase_analysis(), PERIOD)

        lines = lines_by_account(entry)
        assert lines["Proveedores nacionales"].account_code == "2.1.1.010"
        assert lines["Compras"].account_code == "5.1.1.001"


class TestJournalEntryCandidate:
    """Line and entry invariants."""

    def test_line_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            JournalLine("5.1.1.001", "Compras", "", debit_amount=Decimal("-1"))

    def test_line_rejects_both_sides(self):
        with pytest.raises(ValueError):
            JournalLine(
                "5.1.1.001",
                "Compras",
                "",
                debit_amount=Decimal("10"),
                credit_amount=Decimal("10"),
            )

    def test_line_rejects_zero_amounts(self):
        with pytest.raises(ValueError, match="debit or a credit"):
            JournalLine("5.1.1.001", "Compras", "")

    def test_candidate_built_from_tuple_accepts_lines(self):
        entry = JournalEntryCandidate(
            description="Ajuste",
            period=PERIOD,
            lines=(JournalLine("5.1.1.001", "Compras", "", debit_amount=Decimal("10")),),
        )

        entry.add_line(JournalLine("2.1.1.001", "Proveedores", "", credit_amount=Decimal("10")))

        assert len(entry.lines) == 2
        assert entry.is_balanced

    def test_balance_is_recomputed_from_lines(self):
        entry = JournalBalancer().build_entry(purchase_analysis(), PERIOD)
        assert entry.is_balanced

        entry.add_line(JournalLine("6.1.1.001", "Gastos", "ajuste", debit_amount=Decimal("1")))

        assert not entry.is_balanced

    def test_posted_entry_is_frozen(self):
        entry = JournalBalancer().build_entry(purchase_analysis(), PERIOD)

        entry.mark_posted(7)

        assert entry.is_posted
        assert entry.entry_number == 7
        assert isinstance(entry.lines, tuple)
        with pytest.raises(ImmutableEntryError):
            entry.add_line(
                JournalLine("6.1.1.001", "Gastos", "ajuste", debit_amount=Decimal("1"))
            )

    def test_to_dict(self):
        data = JournalBalancer().build_entry(purchase_analysis(), PERIOD).to_dict()

        assert data["status"] == "preliminary"
        assert data["is_balanced"] is True
        assert len(data["lines"]) == 3
