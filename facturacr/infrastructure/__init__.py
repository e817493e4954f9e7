"""Infrastructure layer implementations."""

from facturacr.infrastructure import email, hacienda, signing, storage, xml

__all__ = ["storage", "hacienda", "signing", "email", "xml"]
