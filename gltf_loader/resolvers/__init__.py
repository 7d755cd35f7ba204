"""Reference and node hierarchy resolution."""
