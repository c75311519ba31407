"""Tracker document model and the pure operations on it."""
