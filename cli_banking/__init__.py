"""
CLI Banking Session Manager

A single-user command-line banking system with per-account encrypted
credentials, password re-confirmation before balance changes, and
Decimal-precise balances persisted to a flat CSV file.
"""

__version__ = "1.0.0"
