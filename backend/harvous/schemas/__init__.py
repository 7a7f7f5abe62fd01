"""Pydantic request/response models for the Harvous API (camelCase JSON)."""
