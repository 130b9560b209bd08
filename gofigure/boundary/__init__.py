"""Boundary layer: database, artifact storage and external service clients."""
