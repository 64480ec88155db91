"""Command-line interface for hashdeck."""
