"""Crosscutting: config, logging, errores, métricas, paginación y middleware."""
