"""Shared helpers used by every Tubely function."""
