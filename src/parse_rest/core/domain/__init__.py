"""Modelos y entidades del dominio.

Por qué:
- Aquí viven los valores de cable, los objetos Parse, la especificación de
  consultas y la taxonomía de errores.
- El dominio no conoce HTTP ni la CLI: solo conceptos del protocolo.
"""
