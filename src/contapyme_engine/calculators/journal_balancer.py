"""RCV analysis to double-entry journal entry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from contapyme_engine.calculators.types import (
    JournalEntryCandidate,
    JournalLine,
    RCVAnalysis,
    RCVEntitySummary,
    RegisterType,
)
from contapyme_engine.calculators.utils import ZERO
from contapyme_engine.errors import UnbalancedEntryError

logger = logging.getLogger(__name__)


class Side(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"

    @property
    def opposite(self) -> Side:
        return Side.CREDIT if self is Side.DEBIT else Side.DEBIT


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry."""

    code: str
    name: str


@dataclass(frozen=True)
class AccountMap:
    """Accounts used when centralising an RCV register."""

    purchases_net: Account = Account("5.1.1.001", "Compras")
    purchases_exempt: Account = Account("5.1.1.002", "Compras exentas")
    iva_credit: Account = Account("1.1.4.001", "IVA Crédito Fiscal")
    accounts_payable: Account = Account("2.1.1.001", "Proveedores")
    sales_net: Account = Account("4.1.1.001", "Ventas")
    sales_exempt: Account = Account("4.1.1.002", "Ventas exentas")
    iva_debit: Account = Account("2.1.4.001", "IVA Débito Fiscal")
    accounts_receivable: Account = Account("1.1.3.001", "Clientes")


@dataclass(frozen=True)
class BalanceCheck:
    """Balance state of a journal entry."""

    total_debit: Decimal
    total_credit: Decimal

    @property
    def difference(self) -> Decimal:
        return self.total_debit - self.total_credit

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class JournalBalancer:
    """Builds a journal entry proposal from an RCV analysis.

    Purchases:
    - DEBIT Compras (net), Compras exentas (exempt), IVA Crédito Fiscal (IVA)
    - CREDIT Proveedores (calculated total)

    Sales:
    - DEBIT Clientes (calculated total)
    - CREDIT Ventas (net), Ventas exentas (exempt), IVA Débito Fiscal (IVA)

    Debits equal credits only when exempt + net + IVA == calculated total,
    so a defective decomposition upstream shows up as an unbalanced entry.
    Negative amounts (credit notes dominating) move to the opposite side;
    zero amounts produce no line.
    """

    def __init__(self, accounts: AccountMap | None = None):
        self.accounts = accounts or AccountMap()

    def build_entry(
        self,
        analysis: RCVAnalysis,
        period: str,
        *,
        ledger_id: str | None = None,
        detail_by_entity: bool = False,
    ) -> JournalEntryCandidate:
        """Derive a preliminary journal entry from an RCV analysis.

        With ``detail_by_entity`` the payable/receivable side is split into
        one line per supplier or client, using each entity's calculated total.
        """
        register_type = RegisterType(analysis.register_type)
        is_purchase = register_type == RegisterType.PURCHASE
        label = "Compras" if is_purchase else "Ventas"

        entry = JournalEntryCandidate(
            description=f"Centralización RCV {label} período {period}",
            period=period,
            source_type=f"rcv_{register_type.value}",
            ledger_id=ledger_id,
        )

        if is_purchase:
            detail_side = Side.DEBIT
            net_account = self.accounts.purchases_net
            exempt_account = self.accounts.purchases_exempt
            iva_account = self.accounts.iva_credit
            counterpart = self.accounts.accounts_payable
        else:
            detail_side = Side.CREDIT
            net_account = self.accounts.sales_net
            exempt_account = self.accounts.sales_exempt
            iva_account = self.accounts.iva_debit
            counterpart = self.accounts.accounts_receivable

        count = analysis.total_transacciones
        self._add(
            entry, net_account, f"{label} netas del período ({count} documentos)",
            analysis.monto_neto_global, detail_side,
        )
        self._add(
            entry, exempt_account, f"{label} exentas del período",
            analysis.monto_exento_global, detail_side,
        )
        self._add(
            entry, iva_account, f"IVA {label.lower()} del período",
            analysis.monto_iva_global, detail_side,
        )

        if detail_by_entity and analysis.entities:
            for entity in analysis.entities:
                self._add(
                    entry, counterpart, self._entity_description(entity),
                    entity.monto_calculado, detail_side.opposite,
                )
        else:
            self._add(
                entry, counterpart, f"Total {label.lower()} del período",
                analysis.monto_calculado_global, detail_side.opposite,
            )

        check = self.check_balance(entry)
        if not check.is_balanced:
            logger.warning(
                "RCV %s entry for %s is unbalanced: debit %s, credit %s",
                register_type.value,
                period,
                check.total_debit,
                check.total_credit,
            )
        return entry

    @staticmethod
    def check_balance(entry: JournalEntryCandidate) -> BalanceCheck:
        """Recompute debit and credit totals from the entry lines."""
        return BalanceCheck(total_debit=entry.total_debit, total_credit=entry.total_credit)

    @classmethod
    def ensure_balanced(cls, entry: JournalEntryCandidate) -> None:
        """Raise UnbalancedEntryError unless debits equal credits exactly."""
        if not cls.check_balance(entry).is_balanced:
            raise UnbalancedEntryError(entry)

    @staticmethod
    def _entity_description(entity: RCVEntitySummary) -> str:
        return f"{entity.razon_social} ({entity.rut})"

    @staticmethod
    def _add(
        entry: JournalEntryCandidate,
        account: Account,
        description: str,
        amount: Decimal,
        side: Side,
    ) -> None:
        if amount == 0:
            return
        if amount < 0:
            amount, side = -amount, side.opposite
        entry.add_line(
            JournalLine(
                account_code=account.code,
                account_name=account.name,
                description=description,
                debit_amount=amount if side is Side.DEBIT else ZERO,
                credit_amount=amount if side is Side.CREDIT else ZERO,
            )
        )
