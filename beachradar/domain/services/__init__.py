"""Domain services for Beach Radar."""
