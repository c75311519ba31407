"""Remote document store adapters."""
