"""List sources, caches and dataset acquisition."""
