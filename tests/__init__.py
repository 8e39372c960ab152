"""
Test suite for mcr-pricing

Contains:
- tests/unit/          : Unit tests for individual modules and the engine facade
"""
