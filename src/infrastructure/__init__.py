"""
infrastructure - Concrete implementations of domain ports.

Contains the vendor-specific code: aiosqlite persistence, settings loading.
Depends on domain/ only (implements ports). Never imported by application/.
"""
