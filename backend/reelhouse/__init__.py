"""Reelhouse streaming API."""
