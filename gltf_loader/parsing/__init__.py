"""Payload decoding and Document construction."""
