"""Environment configuration and client options."""
