"""Cross-field semantic validation."""
