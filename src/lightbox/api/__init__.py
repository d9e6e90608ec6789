"""HTTP API for Lightbox."""
