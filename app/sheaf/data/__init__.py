"""Bundled data files for sheaf."""
