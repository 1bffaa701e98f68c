"""Analysis tools auto-discovered by tools.registry."""
