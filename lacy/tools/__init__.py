"""Network and file helpers for artifacts."""
