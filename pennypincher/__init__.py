"""
PennyPincher - Source Package

A single-user personal finance tracker: expenses, income, bill splitting,
savings goals, receipt scanning, statement import and an encrypted vault.

DESIGN PRINCIPLES:
1. The ledger is a plain list, transformed by pure functions
2. Every command reads the whole ledger, transforms it, writes it back
3. Settlement state is only written by the settlement engine and reversal
4. The AI suggests, the ledger code decides
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "PennyPincher Team"
