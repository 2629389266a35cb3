"""Functional domains."""
