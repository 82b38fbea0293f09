"""role_admin: servicio de gestión de roles y permisos."""

__version__ = "1.0.0"
