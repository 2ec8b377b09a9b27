"""Shop performance scorecard service."""
