"""Core orchestration logic: backoff, status mapping, transform and mesh phases."""
