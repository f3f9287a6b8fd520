"""Background tasks (dramatiq actors)."""
