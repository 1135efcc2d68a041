"""
Expense Splitter - Source Package

Splits shared expenses fairly among friends and works out who pays whom.

DESIGN PRINCIPLES:
1. The calculation core is pure: plain data in, plain data out
2. Validate before storing, never inside the calculation
3. Every change recalculates the debts
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Splitter Team"
