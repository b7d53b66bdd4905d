"""Object storage access and key routing."""
