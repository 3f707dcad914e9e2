"""
Errores de negocio del motor de albaranes

Todos derivan de DeliveryNoteError y llevan un status_code orientativo
para la capa HTTP y un payload estructurado (to_dict) para que el cliente
pueda mostrar un mensaje accionable.

PersistenceError separa los fallos de infraestructura (base de datos no
disponible, errores de driver) de los rechazos de negocio.
"""

from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID


class DeliveryNoteError(Exception):
    """Base error for delivery note operations."""

    status_code = 400
    code = "delivery_note_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": self.message}


class ValidationError(DeliveryNoteError):
    """Datos de entrada inválidos (cantidad, precio, líneas vacías)."""

    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None, line_index: Optional[int] = None):
        self.field = field
        self.line_index = line_index
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.field is not None:
            data["field"] = self.field
        if self.line_index is not None:
            data["line_index"] = self.line_index
        return data


class PartnerNotFound(DeliveryNoteError):
    """Proveedor/cliente inexistente, eliminado o de otra empresa."""

    status_code = 404
    code = "partner_not_found"

    def __init__(self, partner_id: UUID, partner_kind: str = "partner"):
        self.partner_id = partner_id
        self.partner_kind = partner_kind
        super().__init__(
            f"El {partner_kind} con ID {partner_id} no existe o no pertenece a la empresa"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"partner_id": str(self.partner_id), "partner_kind": self.partner_kind})
        return data


class ArticleNotFound(DeliveryNoteError):
    """Artículo inexistente, eliminado o de otra empresa."""

    status_code = 404
    code = "article_not_found"

    def __init__(self, article_id: UUID):
        self.article_id = article_id
        super().__init__(f"El artículo con ID {article_id} no existe")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["article_id"] = str(self.article_id)
        return data


class InsufficientStock(DeliveryNoteError):
    """
    Stock disponible menor que la cantidad solicitada.

    available es el stock que queda dentro de la unidad de trabajo. Si líneas
    anteriores del mismo albarán ya habían descontado el artículo, reserved
    indica cuánto; el stock confirmado es available + reserved.
    """

    status_code = 409
    code = "insufficient_stock"

    def __init__(
        self,
        article_id: UUID,
        article_name: Optional[str],
        available: Optional[Decimal],
        requested: Decimal,
        reserved: Optional[Decimal] = None
    ):
        self.article_id = article_id
        self.article_name = article_name
        self.available = available
        self.requested = requested
        self.reserved = reserved
        message = (
            f"Stock insuficiente para el artículo {article_name or article_id}. "
            f"Stock disponible: {available}, Cantidad solicitada: {requested}"
        )
        if reserved:
            message += f" (tras descontar {reserved} en líneas anteriores del albarán)"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "article_id": str(self.article_id),
            "article_name": self.article_name,
            "available": str(self.available) if self.available is not None else None,
            "requested": str(self.requested),
            "reserved": str(self.reserved) if self.reserved is not None else None,
        })
        return data


class NoteNotFound(DeliveryNoteError):
    """Albarán inexistente, eliminado o de otra empresa."""

    status_code = 404
    code = "note_not_found"

    def __init__(self, note_id: UUID):
        self.note_id = note_id
        super().__init__(f"El albarán con ID {note_id} no existe")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["note_id"] = str(self.note_id)
        return data


class PersistenceError(DeliveryNoteError):
    """Fallo de infraestructura durante la unidad de trabajo."""

    status_code = 503
    code = "persistence_error"

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"Error de persistencia en {operation}: {type(cause).__name__}"
        )
