"""TrrBot utilities: configuration, logging setup, random helpers and validation."""
