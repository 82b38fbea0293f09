"""Routers HTTP por feature."""
