"""Core submit/confirm functionality."""
