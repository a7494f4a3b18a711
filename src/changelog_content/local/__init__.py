"""File-backed persistence of content entries."""
