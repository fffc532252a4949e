"""Schedule materialization and season-level practice updates."""
