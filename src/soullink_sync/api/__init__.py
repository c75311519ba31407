"""HTTP API of the reference document server."""
