# Ad Service Contracts

"""
Ad Service Contract Module

This module contains:
- data_contract.py: Canonical models re-exported for tests and the
  AdTestDataFactory used by every ad test layer
"""
