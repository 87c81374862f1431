"""
Database package initialization.

The package is split into:
- base: declarative base and mixins
- connection: async engine, session factory and FastAPI dependency
- models: ORM models for the storefront tables
"""

__all__ = []
