"""Core models, configuration and exceptions for the Krucible client."""
