"""
application - Use-case services and DTOs.

Depends on domain/ only. Never imports from infrastructure/ or adapters/.
"""
