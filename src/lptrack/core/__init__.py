"""Core business logic for LPTrack."""
