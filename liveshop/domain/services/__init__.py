"""Pure domain services: lineup ordering, playback URLs and state reconciliation."""
