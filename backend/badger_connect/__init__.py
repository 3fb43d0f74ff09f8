"""Badger Connect realtime matchmaking backend."""
