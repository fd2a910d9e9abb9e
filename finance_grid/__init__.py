"""
Finance Grid - Source Package

An offline-tolerant editing engine for small tabular financial datasets
(projects, subscription revenue, financial summary) kept in sync with a
remote record store.

DESIGN PRINCIPLES:
1. Apply locally first → sync remotely → compensate per policy
2. Derived fields and totals are always recomputed, never typed in
3. Keep working offline; the cache mirror is always current
4. Every sync step is logged
5. Remote store and cache are swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Grid Team"
