"""core — Pure analysis layer (no I/O)."""
