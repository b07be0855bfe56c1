"""Packaged data files (plugin catalogue)."""
