"""Enums and exceptions shared across the package."""
