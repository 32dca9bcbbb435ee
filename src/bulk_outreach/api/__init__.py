"""HTTP access to the remote job service (authenticated)."""
