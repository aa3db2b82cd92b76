"""Pytest fixtures for reconciliation engine tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from contapyme_engine.calculators.types import BookDetailSnapshot, BookSnapshot
from contapyme_engine.models import Base, Company, Contract, Employee, Liquidation
from contapyme_engine.services.record_store import SqlRecordStore

# In-memory SQLite shared by every connection of the engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PERIOD = "2024-03"


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with all tables."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def store(session: AsyncSession) -> SqlRecordStore:
    return SqlRecordStore(session)


@pytest_asyncio.fixture
async def test_company(session: AsyncSession) -> Company:
    """Create a test company."""
    company = Company(rut="76.123.456-7", name="Comercial Los Andes SpA")
    session.add(company)
    await session.flush()
    return company


@pytest_asyncio.fixture
async def test_employees(session: AsyncSession, test_company: Company) -> list[Employee]:
    """Create three employees with active contracts.

    RUTs are stored in mixed formats on purpose; the join normalizes them.
    """
    employees = []
    for rut, first, last, second_last, position, salary in [
        ("12.345.678-5", "María", "González", "Pérez", "Gerente de Finanzas", "5500000"),
        ("98765433", "Juan", "Soto", "Rojas", "Vendedor", "850000"),
        ("15.111.222-k", "Camila", "Muñoz", "Díaz", "Bodeguera", "620000"),
    ]:
        employees.append(
            Employee(
                company_id=test_company.company_id,
                rut=rut,
                first_name=first,
                last_name=last,
                second_last_name=second_last,
                contracts=[
                    Contract(
                        position=position,
                        contract_type="indefinido",
                        base_salary=Decimal(salary),
                        status="active",
                        start_date=date(2023, 1, 1),
                    )
                ],
            )
        )
    session.add_all(employees)
    await session.flush()
    return employees


@pytest_asyncio.fixture
async def test_payroll_book(
    store: SqlRecordStore, test_company: Company, test_employees: list[Employee]
) -> BookSnapshot:
    """Payroll book for PERIOD.

    Totals: haberes 8,710,000, descuentos 2,154,000, líquido 6,556,000.
    """
    details = [
        BookDetailSnapshot(
            employee_rut="12.345.678-5",
            nombres="María",
            apellido_paterno="González",
            apellido_materno="Pérez",
            cargo="Gerente de Finanzas",
            area="Administración",
            sueldo_base=Decimal("5500000"),
            colacion=Decimal("60000"),
            movilizacion=Decimal("40000"),
            total_haberes=Decimal("6740000"),
            total_descuentos=Decimal("1715000"),
            sueldo_liquido=Decimal("5025000"),
        ),
        BookDetailSnapshot(
            employee_rut="9.876.543-3",
            nombres="Juan",
            apellido_paterno="Soto",
            apellido_materno="Rojas",
            cargo="Vendedor",
            area="Comercial",
            sueldo_base=Decimal("850000"),
            colacion=Decimal("50000"),
            movilizacion=Decimal("40000"),
            total_haberes=Decimal("1180000"),
            total_descuentos=Decimal("268000"),
            sueldo_liquido=Decimal("912000"),
        ),
        BookDetailSnapshot(
            employee_rut="15.111.222-K",
            nombres="Camila",
            apellido_paterno="Muñoz",
            apellido_materno="Díaz",
            cargo="Bodeguera",
            area="Operaciones",
            sueldo_base=Decimal("620000"),
            colacion=Decimal("50000"),
            movilizacion=Decimal("40000"),
            total_haberes=Decimal("790000"),
            total_descuentos=Decimal("171000"),
            sueldo_liquido=Decimal("619000"),
        ),
    ]
    book = BookSnapshot.from_details(test_company.company_id, PERIOD, details)
    book_id = await store.save_payroll_book(book)
    return BookSnapshot.from_details(test_company.company_id, PERIOD, details, book_id=book_id)


@pytest_asyncio.fixture
async def test_liquidations(
    session: AsyncSession, test_company: Company, test_employees: list[Employee]
) -> list[Liquidation]:
    """Liquidations for the first two employees; the third has none.

    Juan's stored totals match his components. Maria's components add up to
    140,000 less gross (and net) income than her stored totals.
    """
    maria, juan, _ = test_employees
    liquidations = [
        Liquidation(
            company_id=test_company.company_id,
            employee_id=maria.employee_id,
            period_year=2024,
            period_month=3,
            afp_amount=Decimal("520000"),
            health_amount=Decimal("364000"),
            unemployment_amount=Decimal("156000"),
            income_tax_amount=Decimal("285000"),
            other_deductions=Decimal("390000"),
            base_salary=Decimal("5500000"),
            food_allowance=Decimal("60000"),
            transport_allowance=Decimal("40000"),
            bonuses=Decimal("600000"),
            gratification=Decimal("400000"),
            total_gross_income=Decimal("6740000"),
            total_deductions=Decimal("1715000"),
            net_salary=Decimal("5025000"),
        ),
        Liquidation(
            company_id=test_company.company_id,
            employee_id=juan.employee_id,
            period_year=2024,
            period_month=3,
            afp_amount=Decimal("104000"),
            health_amount=Decimal("82600"),
            unemployment_amount=Decimal("7080"),
            income_tax_amount=Decimal("18000"),
            other_deductions=Decimal("56320"),
            base_salary=Decimal("850000"),
            food_allowance=Decimal("50000"),
            transport_allowance=Decimal("40000"),
            commissions=Decimal("240000"),
            total_gross_income=Decimal("1180000"),
            total_deductions=Decimal("268000"),
            net_salary=Decimal("912000"),
        ),
    ]
    session.add_all(liquidations)
    await session.flush()
    return liquidations
