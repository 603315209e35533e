"""Network module for the SKK server."""
