"""
State tables and encodings for the vesting ledger
"""

from .balances import BalanceTable
from .nonces import NonceTable

__all__ = [
    "BalanceTable",
    "NonceTable",
]
