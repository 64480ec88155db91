"""Web interface for hashdeck."""
