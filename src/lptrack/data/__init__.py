"""Data layer for LPTrack."""
