"""Command-line interface for adkstream."""
