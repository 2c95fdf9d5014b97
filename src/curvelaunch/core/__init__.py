"""Core curve engine, execution substrate and shared infrastructure."""
