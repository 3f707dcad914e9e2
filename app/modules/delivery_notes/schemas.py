"""
Esquemas Pydantic para el módulo de Albaranes (Delivery Notes)

Entrada:
- DeliveryNoteLineCreate: artículo, cantidad y precio explícito opcional
- PurchaseDeliveryNoteCreate / SalesDeliveryNoteCreate: cabecera + líneas

Salida:
- DeliveryNoteLineOut: línea calculada (precio resuelto, importes, snapshot)
- PurchaseDeliveryNoteOut / SalesDeliveryNoteOut: albarán completo con líneas
- DeliveryNoteList: listado paginado

Las reglas de negocio (cantidad > 0, precio >= 0, al menos una línea) se
validan en el servicio, que las reporta como ValidationError; aquí sólo se
comprueban tipos y longitudes.
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime


# ===== LINE SCHEMAS =====

class DeliveryNoteLineCreate(BaseModel):
    article_id: UUID = Field(..., description="ID del artículo")
    quantity: Decimal = Field(..., description="Cantidad (> 0, hasta 4 decimales)")
    price: Optional[Decimal] = Field(
        None,
        description="Precio unitario explícito; si se omite se usa tarifa o precio base"
    )


class DeliveryNoteLineOut(BaseModel):
    id: UUID
    position: int
    article_id: UUID
    article_code: str
    article_name: str
    quantity: Decimal
    price: Decimal
    iva_percentage: Decimal
    subtotal: Decimal
    iva_amount: Decimal
    total: Decimal

    class Config:
        from_attributes = True


# ===== PARTNER SUMMARY =====

class PartnerSummary(BaseModel):
    id: UUID
    name: str
    tax_id: Optional[str] = None

    class Config:
        from_attributes = True


# ===== HEADER SCHEMAS =====

class DeliveryNoteBase(BaseModel):
    date: datetime = Field(..., description="Fecha del albarán")
    reference: Optional[str] = Field(None, description="Referencia externa (máx. 100 caracteres)")
    lines: List[DeliveryNoteLineCreate] = Field(..., description="Líneas del albarán")


class PurchaseDeliveryNoteCreate(DeliveryNoteBase):
    supplier_id: UUID = Field(..., description="ID del proveedor")


class SalesDeliveryNoteCreate(DeliveryNoteBase):
    customer_id: UUID = Field(..., description="ID del cliente")


class DeliveryNoteOut(BaseModel):
    id: UUID
    company_id: UUID
    partner_id: UUID
    partner: PartnerSummary
    date: datetime
    reference: Optional[str] = None
    billing_status: int
    subtotal: Decimal
    iva_total: Decimal
    total: Decimal
    created_at: datetime
    updated_at: datetime
    lines: List[DeliveryNoteLineOut] = []

    class Config:
        from_attributes = True


class PurchaseDeliveryNoteOut(DeliveryNoteOut):
    supplier_id: UUID


class SalesDeliveryNoteOut(DeliveryNoteOut):
    customer_id: UUID


class DeliveryNoteSummary(BaseModel):
    """Cabecera sin líneas, para listados"""
    id: UUID
    partner_id: UUID
    partner: PartnerSummary
    date: datetime
    reference: Optional[str] = None
    billing_status: int
    total: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DeliveryNoteList(BaseModel):
    items: List[DeliveryNoteSummary]
    total: int
    limit: int
    offset: int
