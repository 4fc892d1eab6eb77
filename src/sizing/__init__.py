"""Filesystem size aggregation for resolved packages."""
