"""Service-layer integrations."""
