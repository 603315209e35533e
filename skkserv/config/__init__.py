"""Configuration module for the SKK server."""
