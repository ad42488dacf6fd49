"""External collaborators and per-profile service objects."""
