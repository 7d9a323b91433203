"""Infrastructure layer: cache tiers and monitoring."""
