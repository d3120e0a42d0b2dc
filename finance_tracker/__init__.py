"""
Finance Tracker - Core Package

A personal spending tracker: transactions against a monthly budget,
derived analytics, rule-based input validation and pattern search.

DESIGN PRINCIPLES:
1. One store owns all mutable state and announces every change
2. Validation reports problems, it never silently fixes them
3. Bad search patterns fail open, they never crash a view
4. Memory may run ahead of storage, and the caller is told when it does
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
