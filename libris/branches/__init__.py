"""Branches of a library (tenant-scoped CRUD)."""
