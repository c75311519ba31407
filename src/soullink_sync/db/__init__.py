"""Database setup and models."""
