"""Data access layer for stored documents."""
