"""Load a demo company with one payroll period into the database.

Usage:
    python -m scripts.load_fixtures [--period 2024-03] [--database-url URL]

Creates a company, three employees, the payroll book for the period and a
liquidation for two of the three employees, so the ledger shows both the
itemized and the residual-only paths.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import async_sessionmaker

from contapyme_engine.calculators.types import BookDetailSnapshot, BookSnapshot
from contapyme_engine.calculators.utils import parse_period
from contapyme_engine.config import get_settings
from contapyme_engine.database import create_schema, get_engine
from contapyme_engine.models import Company, Contract, Employee, Liquidation
from contapyme_engine.services.record_store import SqlRecordStore

EMPLOYEES = [
    # rut, nombres, apellido paterno, apellido materno, cargo, area, sueldo base
    ("12.345.678-5", "María", "González", "Pérez", "Contadora", "Administración", "1200000"),
    ("9.876.543-3", "Juan", "Soto", "Rojas", "Vendedor", "Comercial", "850000"),
    ("15.111.222-K", "Camila", "Muñoz", "Díaz", "Bodeguera", "Operaciones", "620000"),
]

# haberes, descuentos per employee (same order as EMPLOYEES)
BOOK_TOTALS = [
    ("1550000", "395000"),
    ("1180000", "268000"),
    ("790000", "171000"),
]

# afp, health, unemployment, income tax; the third employee has no liquidation
LIQUIDATIONS = [
    ("138000", "108500", "9300", "61000"),
    ("104000", "82600", "7080", "18000"),
]


async def load_fixtures(database_url: str, period: str) -> None:
    year, month = parse_period(period)
    engine = get_engine(database_url)
    await create_schema(engine)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    try:
        async with factory() as session:
            company = Company(rut="76.123.456-7", name="Comercial Los Andes SpA")
            session.add(company)
            await session.flush()

            employees = []
            details = []
            for (rut, nombres, paterno, materno, cargo, area, base), (haberes, descuentos) in zip(
                EMPLOYEES, BOOK_TOTALS
            ):
                employee = Employee(
                    company_id=company.company_id,
                    rut=rut,
                    first_name=nombres,
                    last_name=paterno,
                    second_last_name=materno,
                    contracts=[
                        Contract(
                            position=cargo,
                            contract_type="indefinido",
                            base_salary=Decimal(base),
                            status="active",
                            start_date=date(year - 1, 1, 1),
                        )
                    ],
                )
                employees.append(employee)
                details.append(
                    BookDetailSnapshot(
                        employee_rut=rut,
                        nombres=nombres,
                        apellido_paterno=paterno,
                        apellido_materno=materno,
                        cargo=cargo,
                        area=area,
                        sueldo_base=Decimal(base),
                        colacion=Decimal("50000"),
                        movilizacion=Decimal("40000"),
                        total_haberes=Decimal(haberes),
                        total_descuentos=Decimal(descuentos),
                        sueldo_liquido=Decimal(haberes) - Decimal(descuentos),
                    )
                )
            session.add_all(employees)
            await session.flush()

            for employee, detail, (afp, health, unemployment, tax) in zip(
                employees, details, LIQUIDATIONS
            ):
                session.add(
                    Liquidation(
                        company_id=company.company_id,
                        employee_id=employee.employee_id,
                        period_year=year,
                        period_month=month,
                        afp_amount=Decimal(afp),
                        health_amount=Decimal(health),
                        unemployment_amount=Decimal(unemployment),
                        income_tax_amount=Decimal(tax),
                        base_salary=detail.sueldo_base,
                        food_allowance=detail.colacion,
                        transport_allowance=detail.movilizacion,
                        total_gross_income=detail.total_haberes,
                        total_deductions=detail.total_descuentos,
                        net_salary=detail.sueldo_liquido,
                    )
                )

            store = SqlRecordStore(session)
            await store.save_payroll_book(
                BookSnapshot.from_details(company.company_id, period, details)
            )
            await session.commit()

            print(f"Company: {company.name} ({company.company_id})")
            print(f"Period: {period}")
            print(f"Employees: {len(employees)}, liquidations: {len(LIQUIDATIONS)}")
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Load demo fixtures")
    parser.add_argument("--database-url", default=get_settings().database_url)
    parser.add_argument("--period", default="2024-03")
    args = parser.parse_args()

    asyncio.run(load_fixtures(args.database_url, args.period))


if __name__ == "__main__":
    main()
