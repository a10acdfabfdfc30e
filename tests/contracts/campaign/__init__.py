# Campaign Service Contracts

"""
Campaign Service Contract Module

This module contains:
- data_contract.py: the service's data models re-exported for tests, plus
  test data factories and request builders
"""
