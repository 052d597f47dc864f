"""
Pure domain layer.

Contains the clock abstraction and the sign convention, with NO
dependencies on ORM, database or I/O.
"""

from books_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from books_kernel.domain.sign import (
    NormalBalance,
    normal_balance_for,
    normalized_amount,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "NormalBalance",
    "normal_balance_for",
    "normalized_amount",
]
