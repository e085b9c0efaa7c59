"""Background full-text search engine for scoped documentation manifests.

The package is organised around a small in-memory search stack:
- search: analyzers, correlation table, inverted index, link analysis, queries
- spelling: reference dictionaries and the spelling-suggestion model
- coordinator: builds, publishes and serves index generations
"""

__version__ = "0.1.0"
