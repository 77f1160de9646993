"""
gui - Puente entre el backend y la interfaz Qt
"""
