"""tools — MusicalTool wrappers around the analysis core."""
