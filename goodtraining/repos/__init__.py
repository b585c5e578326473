"""
Repository layer for REST backend access.

Each module wraps the backend endpoints of one domain entity and returns
parsed models.
"""
