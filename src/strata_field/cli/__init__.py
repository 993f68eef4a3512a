"""Command-line interface for intensity runs."""
