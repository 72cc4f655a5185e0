"""Utility helpers for the Krucible client."""
