"""Command-line interface for attestor."""
