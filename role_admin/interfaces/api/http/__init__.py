"""Adaptador HTTP (FastAPI): router, schemas y mapeo de errores."""
