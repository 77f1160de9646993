"""
Constantes compartidas por el backend
"""
import os

# Formatos que se escanean dentro de una carpeta de manga
SUPPORTED_FORMATS = ('.jpg', '.jpeg', '.png', '.webp', '.bmp')

# Intensidad máxima de un canal de 8 bits
MAX_INTENSITY = 255.0

# Mínimo de imágenes por grupo para que los extremos sean fiables
MIN_BACKGROUND_SAMPLES = 8

# Diferencia blanco-negro por debajo de la cual no se puede recuperar el píxel
MIN_SPAN = 1.0

# Carpeta (relativa a la carpeta de manga) donde se guardan los fondos
BACKGROUND_DIR_NAME = '.backgrounds'
BLACK_BACKGROUND_FILE = 'black.png'
WHITE_BACKGROUND_FILE = 'white.png'
BACKGROUND_META_FILE = 'background.json'

# Calidad de los JPEG de salida y de las vistas previas
JPEG_QUALITY = 95
PREVIEW_JPEG_QUALITY = 90

# Carpetas junto a la aplicación
SETTINGS_DIR_NAME = '__settings__'
LOGS_DIR_NAME = '__logs__'
CONFIG_FILE_NAME = 'config.json'
DEFAULT_OUTPUT_DIR_NAME = 'output'

MAX_WORKERS = max(1, min(8, os.cpu_count() or 1))
