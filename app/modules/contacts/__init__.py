"""
Módulo de Contactos

Terceros que participan en los albaranes:
- Supplier: proveedor de los albaranes de compra, con tarifa de compra opcional
- Customer: cliente de los albaranes de venta, con tarifa de venta opcional

Características principales:
- Sistema multi-tenant con aislamiento por company_id
- Soft delete: un tercero eliminado no puede usarse en albaranes nuevos

Componentes:
- models.py: SQLAlchemy models
- tests.py: Pruebas de alcance por empresa y borrado lógico
"""

from .models import Supplier, Customer

__all__ = [
    "Supplier",
    "Customer",
]
