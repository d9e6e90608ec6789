"""Utility helpers for Lightbox."""
