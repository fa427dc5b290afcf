"""AI mock interview backend."""
