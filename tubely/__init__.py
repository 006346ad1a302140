"""Tubely video ingestion and delivery functions."""
