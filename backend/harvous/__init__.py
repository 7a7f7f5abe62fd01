"""
Harvous Backend
================

Note-taking API with scripture reference detection.

    ┌─────────────────────────────────────┐
    │  routes/       HTTP only            │
    ├─────────────────────────────────────┤
    │  services/     business rules, I/O  │
    ├──────────────────┬──────────────────┤
    │  scripture/      │  tagging/        │  pure: no database, no network
    ├──────────────────┴──────────────────┤
    │  models/ + schemas/ + database.py   │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
