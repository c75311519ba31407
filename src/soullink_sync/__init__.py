"""SoulLink Sync: shared tracker documents for cooperative SoulLink runs."""

__version__ = "1.0.0"
