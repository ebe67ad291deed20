"""Debian/Ubuntu package management."""
