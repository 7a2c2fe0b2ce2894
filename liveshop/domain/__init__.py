"""Domain layer: stream lifecycle rules independent of storage and transport."""
