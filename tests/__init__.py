"""
Test suite for token-locker

Contains:
- tests/unit/          : Unit tests for individual modules and lifecycle scenarios
"""
