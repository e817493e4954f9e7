"""SQLite implementation of company storage."""

from datetime import datetime

import aiosqlite

from facturacr.config import get_logger
from facturacr.core.entities.company import Company
from facturacr.core.exceptions import CompanyNotFoundError
from facturacr.core.interfaces.company_store import ICompanyStore
from facturacr.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteCompanyStore(ICompanyStore):
    """SQLite implementation of company storage."""

    async def get_company(self, company_id: str) -> Company | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM companies WHERE id = ?", (company_id,))
            row = await cursor.fetchone()
            return self._row_to_company(row) if row else None

    async def save_company(self, company: Company) -> Company:
        company.updated_at = datetime.utcnow()
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO companies (
                    id, name, identification_type, identification_number,
                    email, security_code, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    name = excluded.name,
                    identification_type = excluded.identification_type,
                    identification_number = excluded.identification_number,
                    email = excluded.email,
                    security_code = COALESCE(companies.security_code, excluded.security_code),
                    updated_at = excluded.updated_at
                """,
                (
                    company.id,
                    company.name,
                    company.identification_type,
                    company.identification_number,
                    company.email,
                    company.security_code,
                    company.created_at.isoformat(),
                    company.updated_at.isoformat(),
                ),
            )
        logger.info("company_saved", company_id=company.id)
        return company

    async def get_security_code(self, company_id: str) -> str | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT security_code FROM companies WHERE id = ?", (company_id,)
            )
            row = await cursor.fetchone()
            return row["security_code"] if row else None

    async def set_security_code(self, company_id: str, code: str) -> None:
        """Store the code unless the company already has one."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE companies SET security_code = ?, updated_at = ?
                WHERE id = ? AND security_code IS NULL
                """,
                (code, datetime.utcnow().isoformat(), company_id),
            )
            if cursor.rowcount == 0:
                cursor = await conn.execute("SELECT 1 FROM companies WHERE id = ?", (company_id,))
                if await cursor.fetchone() is None:
                    raise CompanyNotFoundError(company_id)

    @staticmethod
    def _row_to_company(row: aiosqlite.Row) -> Company:
        return Company(
            id=row["id"],
            name=row["name"],
            identification_type=row["identification_type"],
            identification_number=row["identification_number"],
            email=row["email"],
            security_code=row["security_code"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
