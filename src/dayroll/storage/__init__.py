"""Object storage for completion photos."""
