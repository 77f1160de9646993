"""
core - Backend de Quita Marcas por estimación de fondos

Submódulos:
    - models: Estructuras de datos (imágenes, fondos, configuración, eventos)
    - services: Códec, escaneo de carpetas, caché de fondos, configuración y logs
    - utils: Constantes y versión
"""
