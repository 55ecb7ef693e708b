"""
Core domain models, integer arithmetic, and payload contracts.

This module contains the foundational building blocks that are independent
of external systems (ledgers, clocks, country lists, etc.).
"""
