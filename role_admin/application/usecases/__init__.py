"""Casos de uso agrupados por subdominio."""
