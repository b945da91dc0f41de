"""Core modules: configuration, errors, logging and canonical models."""
