"""Aplicación FastAPI (entry point, handlers)."""
