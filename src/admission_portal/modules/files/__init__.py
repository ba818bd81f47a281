"""Stored document files."""
