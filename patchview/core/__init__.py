"""Core infrastructure shared by the controls."""
