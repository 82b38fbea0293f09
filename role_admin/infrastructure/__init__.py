"""Capa de infraestructura: DB, repositorios y servicios de resiliencia."""
