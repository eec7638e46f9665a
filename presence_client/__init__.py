"""Presence client: isometric view projector and server connection."""
