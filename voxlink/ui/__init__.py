"""Terminal user interface for Voxlink."""
