"""Adaptadores de I/O.

Por qué:
- Aquí vive todo lo que toca la red (httpx) o el disco; el Core no los importa.
"""
