"""Browser session, snapshots and element lookup."""
