"""Consola web de administración del sistema de inventario distribuido."""
