"""Schemas HTTP (pydantic) de request/response."""
