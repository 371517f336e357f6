"""Ambient plumbing shared by the client: settings and logging."""
