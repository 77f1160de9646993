"""
Información de versión de la aplicación
"""

APP_VERSION = "1.0.0"
APP_NAME = "Manga WM Remover"
