"""Dependency resolution adapter backed by cargo."""
