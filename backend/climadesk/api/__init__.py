"""
API Routes
Proyecto: ClimaDesk (Back-office de climatización)

Módulo de agregación de los routers versionados.
"""

from climadesk.api.v1 import api_v1_router

# Exportación router
__all__ = ["api_v1_router"]
