"""Model-service clients."""
