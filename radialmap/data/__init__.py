"""Bundled example maps."""
