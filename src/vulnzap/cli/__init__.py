"""Command-line interface for the VulnZap client."""
