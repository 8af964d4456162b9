"""
Lecture reminder service.

Turns scheduled lectures and enrollment/preference data into individually
addressed reminder emails and records every delivery attempt.
"""

from .database import close_engine, get_connection, get_engine, get_transaction, is_configured

__all__ = [
    "get_connection",
    "get_transaction",
    "get_engine",
    "close_engine",
    "is_configured",
]
