# inventory/exceptions.py

from rest_framework import status
from rest_framework.exceptions import APIException


class LedgerError(APIException):
    """
    Falla tipada de una operación de inventario.

    Se lanza antes de mutar nada (validación) o desde dentro del bloque
    atómico, en cuyo caso la transacción completa se revierte.
    `context` lleva los datos que identifican la causa (línea, producto, ...).
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operación de inventario inválida.'
    default_code = 'ledger_error'

    def __init__(self, message=None, **context):
        self.message = message or self.default_detail
        self.context = context
        super().__init__(detail=self.message, code=self.default_code)

    @property
    def kind(self):
        return type(self).__name__

    def as_dict(self):
        return {'kind': self.kind, 'detail': self.message, **self.context}


class InvalidReference(LedgerError):
    """Proveedor, cliente, producto, talla, venta o devolución inexistente o inactivo."""
    default_detail = 'Referencia inválida.'
    default_code = 'invalid_reference'


class EmptyOrder(LedgerError):
    default_detail = 'Debe incluir al menos un producto.'
    default_code = 'empty_order'


class InvalidLineItem(LedgerError):
    default_detail = 'Línea de detalle inválida.'
    default_code = 'invalid_line_item'


class InsufficientStock(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Stock insuficiente.'
    default_code = 'insufficient_stock'


class NotVoidable(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'La operación no es válida para anular.'
    default_code = 'not_voidable'


class InvalidReturnRequest(LedgerError):
    default_detail = 'Devolución inválida.'
    default_code = 'invalid_return_request'
