"""Local document store and its replication to a remote store."""
