"""
Money Flow - Source Package

A personal finance tracker that models money movement through a small
directed graph of accounts and projects future balances.

DESIGN PRINCIPLES:
1. The graph is an explicit object owned by the caller
2. Every operation reports its outcome (no silent no-ops)
3. Aggregation is recomputed on demand, never cached
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "2.0.0"
__author__ = "Money Flow Team"
