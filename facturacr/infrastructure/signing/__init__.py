"""Document signing clients."""

from facturacr.infrastructure.signing.remote_signer import RemoteSigner

__all__ = ["RemoteSigner"]
