"""Backend providers: realtime voice and text analysis."""
