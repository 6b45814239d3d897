"""EOR quote reconciliation and enhancement engine."""

__version__ = "0.1.0"
