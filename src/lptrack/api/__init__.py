"""HTTP API for LPTrack."""
