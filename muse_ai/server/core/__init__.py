"""Server configuration."""
