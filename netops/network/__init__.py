"""Network discovery and map rendering."""
