"""
StoreChat

Natural-language analytics for multi-tenant e-commerce stores: questions
become validated, tenant-scoped, read-only SQL plus an optional chart.
"""

__version__ = "0.1.0"
