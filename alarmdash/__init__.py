"""
alarmdash package
=================

Filtering and aggregation behind a fire-brigade alarm dashboard.

- The CLI entry point is in `alarmdash/cli.py`.
- The engine (selection state, recompute cycle) is in `alarmdash/engine.py`.
- Filters are in `alarmdash/filters.py`, reducers in `alarmdash/aggregate.py`.
- Dataset loading is in `alarmdash/loader.py`.
"""

__version__ = '0.1.0'
