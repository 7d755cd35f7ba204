"""Typed in-memory model of glTF documents and its structural schema."""
