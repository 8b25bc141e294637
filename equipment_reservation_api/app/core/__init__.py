"""Configuration, logging, persistence, security and error types."""
