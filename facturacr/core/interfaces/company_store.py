"""Abstract interface for issuing company storage."""

from abc import ABC, abstractmethod

from facturacr.core.entities.company import Company


class ICompanyStore(ABC):
    """Interface for company persistence."""

    @abstractmethod
    async def get_company(self, company_id: str) -> Company | None:
        """Get company by ID."""
        pass

    @abstractmethod
    async def save_company(self, company: Company) -> Company:
        """Insert or update a company."""
        pass

    @abstractmethod
    async def get_security_code(self, company_id: str) -> str | None:
        """Get the company's clave security code, if one was generated."""
        pass

    @abstractmethod
    async def set_security_code(self, company_id: str, code: str) -> None:
        """Store the company's clave security code."""
        pass
