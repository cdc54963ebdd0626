"""
Payments Engine

A transaction-processing ledger for client accounts: deposits, withdrawals,
disputes, resolutions and chargebacks, with exact Decimal bookkeeping.
"""

__version__ = "1.0.0"
