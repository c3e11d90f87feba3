"""Utility helpers for arc-data."""
