"""
domain - Core types, ports and errors.

Pure Python: no SQLite, no FastAPI. Every other layer depends on this one.
"""
