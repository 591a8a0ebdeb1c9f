"""School administration record core."""
