"""Configuration models, loading and CLI interaction."""
