"""Audio acquisition: live capture, file loading and the analysis engine."""
