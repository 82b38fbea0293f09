"""Application layer: casos de uso y tareas de arranque."""
