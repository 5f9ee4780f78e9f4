"""
Core domain models, fixed-point primitives, errors and contracts.

This module contains the foundational building blocks shared by the ledger,
the rebalance calculator and the scoring engine. It is independent of any
custody layer or storage backend.
"""
