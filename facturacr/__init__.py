"""Costa Rican electronic invoicing core."""

__version__ = "1.0.0"
