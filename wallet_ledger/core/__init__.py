"""
Core modules for the wallet ledger.

This package contains amount conversion, token rules, validation, display
formatting and transaction history views.
"""
