"""Integration tests against a live Krucible API."""
