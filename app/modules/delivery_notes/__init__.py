"""
Módulo de Albaranes (Delivery Notes)

Registra la mercancía que entra (albaranes de compra, de proveedores) y la
que sale (albaranes de venta, a clientes), manteniendo el stock de cada
artículo coherente con los albaranes creados.

Funcionalidades:
- Creación atómica: cabecera, líneas y movimientos de stock en una sola
  transacción; cualquier fallo deshace todo
- Resolución de precio por línea: explícito, tarifa del tercero o precio base
- Cálculo de subtotal, IVA (según la familia del artículo) y total por línea,
  con totales acumulados en la cabecera
- Ventas: comprobación de stock previa y decremento condicional atómico,
  de modo que el stock nunca queda negativo aunque haya ventas concurrentes
- Confirmación (actualiza la fecha de modificación), consulta y listado

Arquitectura multi-tenant: todas las operaciones reciben company_id y sólo
ven datos no eliminados de esa empresa.
"""

from .models import (
    BillingStatus,
    PurchaseDeliveryNote, PurchaseDeliveryNoteLine,
    SalesDeliveryNote, SalesDeliveryNoteLine
)
from .service import PurchaseDeliveryNoteService, SalesDeliveryNoteService
from .router import purchase_delivery_notes_router, sales_delivery_notes_router

__all__ = [
    "BillingStatus",
    "PurchaseDeliveryNote",
    "PurchaseDeliveryNoteLine",
    "SalesDeliveryNote",
    "SalesDeliveryNoteLine",
    "PurchaseDeliveryNoteService",
    "SalesDeliveryNoteService",
    "purchase_delivery_notes_router",
    "sales_delivery_notes_router",
]
