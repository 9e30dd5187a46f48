"""HTTP routes for the caching gateway."""
