"""Data store, export and import pipeline for REST client data."""

__version__ = "1.0.0"
