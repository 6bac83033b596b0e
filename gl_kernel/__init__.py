"""
GL Kernel - double-entry general ledger

A posting engine for a chart of accounts with:
- Draft / validated / posted / reversed journal entry lifecycle
- Balanced-entry enforcement before any account balance moves
- Account-required dimension checks on every line
- Gap-free, lock-protected document numbering
"""

__version__ = "0.1.0"
