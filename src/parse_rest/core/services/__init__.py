"""Servicios del Core.

Por qué:
- Lógica pura que orquesta el dominio sin depender de HTTP ni de la CLI
  (compilador de consultas, estado de sesión).
"""
