"""Mealer pantry and AI assistant backend."""
