"""Core components: persistence, rate limiting, configuration and the migration pipeline."""
