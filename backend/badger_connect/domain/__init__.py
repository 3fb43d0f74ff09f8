"""Domain packages for identity, reputation and matchmaking."""
