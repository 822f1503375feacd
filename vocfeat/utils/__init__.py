# vocfeat/utils/__init__.py

"""Utility helpers (logging setup)."""
