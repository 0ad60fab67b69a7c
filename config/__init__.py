"""Environment configuration."""
