"""
Books Kernel - ledger snapshot primitives

An immutable, read-only view of a small business's books with:
- A chart-of-accounts tree indexed for parent/child navigation
- A ledger of debit/credit lines indexed per account and date
- Debit-normal / credit-normal sign convention
- Typed errors and structured logging
"""

__version__ = "0.1.0"
