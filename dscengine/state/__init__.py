"""
Balance bookkeeping for in-memory tokens
"""

from .balances import AllowanceTable, BalanceTable

__all__ = [
    "AllowanceTable",
    "BalanceTable",
]
