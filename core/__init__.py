"""Core runtime helpers: logging and the error hierarchy."""
