"""
Balance - Source Package

A personal finance tracker over a hosted data service: income and
expenses across three cash accounts (rekening, dana, pocket), aggregate
and per-account balances, and a 14-day expense trend.

DESIGN PRINCIPLES:
1. The data service owns balances; we only read its views
2. Validate before writing, refresh after writing
3. No half-finished writes left behind silently
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Balance Team"
