"""Utilities for snapprune."""
