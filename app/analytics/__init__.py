"""Read-only analytics over job sets."""
