# inventory/inputs.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class LineInput:
    """
    Línea propuesta para una compra o venta.
    La talla se identifica por id o por etiqueta ("M", "42") dentro del producto.
    `unit_price` es el costo unitario en compras; en ventas se ignora
    (el precio sale del producto al momento de la venta).
    """
    product_id: int
    quantity: int
    size_id: Optional[int] = None
    size_label: Optional[str] = None
    unit_price: Optional[Decimal] = None
    unit_sale_price: Optional[Decimal] = None


@dataclass(frozen=True)
class LedgerResult:
    """Resultado de una operación: id creado y monto (total o reembolso)."""
    id: int
    total: Decimal
