"""
examdeck: local exam practice over versioned question banks.

Components:
- core: domain models, array codec, version ordering, error taxonomy
- db: catalog store (list.db) and per-exam stores ({file_name}.db)
- study: session manager (attempt state machine and navigation window)
- content: JSON document schema and ingestion pipeline
"""

__version__ = "1.0.0"
