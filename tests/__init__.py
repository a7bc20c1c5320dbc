"""
refstore Test Suite.

This package contains:
- unit/: Unit tests (one module at a time, real SQLite files in temp dirs)
- integration/: Integration tests (provisioning state machine, catalog start-up)
- assets.py: Builders for the SQLite asset files the tests provision from
"""
