"""Lightbox: content backend for a photojournalism portfolio."""

__version__ = "0.1.0"
