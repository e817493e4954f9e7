"""E-mail dispatch clients."""

from facturacr.infrastructure.email.emailjs_sender import EmailJsSender

__all__ = ["EmailJsSender"]
