# Health check module
from edumarket.health.router import router


__all__ = ["router"]
