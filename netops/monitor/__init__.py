"""Read-only network dashboard."""
