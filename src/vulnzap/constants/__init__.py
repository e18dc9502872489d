"""Constant tables shared across VulnZap modules."""
