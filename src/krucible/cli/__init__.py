"""Command-line interface for the Krucible client."""
