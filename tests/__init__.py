"""
Test suite for yield-pool-ledger

Contains:
- tests/unit/          : Unit tests for individual modules and multi-epoch scenarios
"""
