"""
Routers FastAPI para el módulo de Albaranes (Delivery Notes)

Endpoints:
- Albaranes de compra: creación (entrada de stock), listado, detalle, confirmación
- Albaranes de venta: creación (salida de stock), listado, detalle, confirmación

La empresa se toma de la cabecera X-Company-ID (TenantMiddleware). Los
errores de negocio se traducen a HTTP en los manejadores de app.main.
"""

from fastapi import APIRouter, Query, status
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency
from app.dependencies.companyDependencies import TenantId
from app.modules.delivery_notes.service import PurchaseDeliveryNoteService, SalesDeliveryNoteService
from app.modules.delivery_notes.schemas import (
    PurchaseDeliveryNoteCreate, PurchaseDeliveryNoteOut,
    SalesDeliveryNoteCreate, SalesDeliveryNoteOut,
    DeliveryNoteList
)

purchase_delivery_notes_router = APIRouter(prefix="/purchase-delivery-notes", tags=["Purchase Delivery Notes"])
sales_delivery_notes_router = APIRouter(prefix="/sales-delivery-notes", tags=["Sales Delivery Notes"])


# ===== PURCHASE DELIVERY NOTES ENDPOINTS =====

@purchase_delivery_notes_router.post("/", response_model=PurchaseDeliveryNoteOut, status_code=status.HTTP_201_CREATED)
def create_purchase_delivery_note(
    note_data: PurchaseDeliveryNoteCreate,
    tenant_id: TenantId,
    db: db_dependency
):
    """
    Crear un albarán de compra

    Cada línea incrementa el stock del artículo. El precio de la línea es el
    explícito, el de la tarifa de compra del proveedor o el precio de compra
    del artículo, en ese orden.
    """
    service = PurchaseDeliveryNoteService(db)
    return service.create_delivery_note(
        tenant_id, note_data.supplier_id, note_data.date, note_data.reference, note_data.lines
    )


@purchase_delivery_notes_router.get("/", response_model=DeliveryNoteList)
def list_purchase_delivery_notes(
    tenant_id: TenantId,
    db: db_dependency,
    supplier_id: Optional[UUID] = Query(None, description="Filtrar por proveedor"),
    date_from: Optional[datetime] = Query(None, description="Fecha desde"),
    date_to: Optional[datetime] = Query(None, description="Fecha hasta"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0)
):
    """Listar albaranes de compra de la empresa"""
    service = PurchaseDeliveryNoteService(db)
    return service.list_delivery_notes(tenant_id, supplier_id, date_from, date_to, limit, offset)


@purchase_delivery_notes_router.get("/{note_id}", response_model=PurchaseDeliveryNoteOut)
def get_purchase_delivery_note(
    note_id: UUID,
    tenant_id: TenantId,
    db: db_dependency
):
    """Obtener un albarán de compra con sus líneas"""
    service = PurchaseDeliveryNoteService(db)
    return service.get_delivery_note(tenant_id, note_id)


@purchase_delivery_notes_router.post("/{note_id}/confirm", status_code=status.HTTP_204_NO_CONTENT)
def confirm_purchase_delivery_note(
    note_id: UUID,
    tenant_id: TenantId,
    db: db_dependency
):
    """
    Confirmar un albarán de compra

    Sólo registra la fecha de modificación; no altera stock ni líneas.
    """
    service = PurchaseDeliveryNoteService(db)
    service.confirm_delivery_note(tenant_id, note_id)


# ===== SALES DELIVERY NOTES ENDPOINTS =====

@sales_delivery_notes_router.post("/", response_model=SalesDeliveryNoteOut, status_code=status.HTTP_201_CREATED)
def create_sales_delivery_note(
    note_data: SalesDeliveryNoteCreate,
    tenant_id: TenantId,
    db: db_dependency
):
    """
    Crear un albarán de venta

    Antes de mutar nada se comprueba que haya stock para todas las líneas;
    si falta en alguna responde 409 y el stock no cambia.
    """
    service = SalesDeliveryNoteService(db)
    return service.create_delivery_note(
        tenant_id, note_data.customer_id, note_data.date, note_data.reference, note_data.lines
    )


@sales_delivery_notes_router.get("/", response_model=DeliveryNoteList)
def list_sales_delivery_notes(
    tenant_id: TenantId,
    db: db_dependency,
    customer_id: Optional[UUID] = Query(None, description="Filtrar por cliente"),
    date_from: Optional[datetime] = Query(None, description="Fecha desde"),
    date_to: Optional[datetime] = Query(None, description="Fecha hasta"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0)
):
    """Listar albaranes de venta de la empresa"""
    service = SalesDeliveryNoteService(db)
    return service.list_delivery_notes(tenant_id, customer_id, date_from, date_to, limit, offset)


@sales_delivery_notes_router.get("/{note_id}", response_model=SalesDeliveryNoteOut)
def get_sales_delivery_note(
    note_id: UUID,
    tenant_id: TenantId,
    db: db_dependency
):
    """Obtener un albarán de venta con sus líneas"""
    service = SalesDeliveryNoteService(db)
    return service.get_delivery_note(tenant_id, note_id)


@sales_delivery_notes_router.post("/{note_id}/confirm", status_code=status.HTTP_204_NO_CONTENT)
def confirm_sales_delivery_note(
    note_id: UUID,
    tenant_id: TenantId,
    db: db_dependency
):
    """Confirmar un albarán de venta (sólo actualiza la fecha de modificación)"""
    service = SalesDeliveryNoteService(db)
    service.confirm_delivery_note(tenant_id, note_id)
