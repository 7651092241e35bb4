"""Domain and list-format helpers."""
