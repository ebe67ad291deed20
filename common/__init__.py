"""Shared helpers: command execution, apt, files, downloads and orchestration."""
