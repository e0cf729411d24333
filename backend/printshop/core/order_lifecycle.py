"""
Máquina de estados del pedido.

Flujo lineal: pendiente -> en_proceso -> terminado -> entregado.
'cancelado' es absorbente: se alcanza desde cualquier estado y no tiene salida.
"""
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    pendiente = "pendiente"
    en_proceso = "en_proceso"
    terminado = "terminado"
    entregado = "entregado"
    cancelado = "cancelado"


PIPELINE = [
    OrderStatus.pendiente,
    OrderStatus.en_proceso,
    OrderStatus.terminado,
    OrderStatus.entregado,
]

STATUS_LABELS = {
    OrderStatus.pendiente: "Pendiente",
    OrderStatus.en_proceso: "Imprimiendo",
    OrderStatus.terminado: "Listo",
    OrderStatus.entregado: "Entregado",
    OrderStatus.cancelado: "Cancelado",
}

# Retrocesos que no deben volver a descontar filamento
BACKWARD_MOVES = {
    (OrderStatus.entregado, OrderStatus.terminado),
    (OrderStatus.entregado, OrderStatus.en_proceso),
    (OrderStatus.terminado, OrderStatus.en_proceso),
}

REALIZED_STATUSES = {OrderStatus.entregado}
INCOME_STATUSES = {OrderStatus.entregado, OrderStatus.terminado}
PENDING_STATUSES = {OrderStatus.pendiente, OrderStatus.en_proceso}


class InvalidTransition(ValueError):
    pass


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidTransition(f"Estado desconocido: {value}")


def status_label(value: str) -> str:
    try:
        return STATUS_LABELS[OrderStatus(value)]
    except ValueError:
        return value


def advance(current: str) -> OrderStatus:
    """Next pipeline status; unchanged when already last or cancelled."""
    status = parse_status(current)
    if status == OrderStatus.cancelado:
        return status
    index = PIPELINE.index(status)
    if index + 1 < len(PIPELINE):
        return PIPELINE[index + 1]
    return status


def retreat(current: str) -> OrderStatus:
    """Previous pipeline status; unchanged when already first or cancelled."""
    status = parse_status(current)
    if status == OrderStatus.cancelado:
        return status
    index = PIPELINE.index(status)
    if index > 0:
        return PIPELINE[index - 1]
    return status


def validate_transition(current: str, new: str) -> OrderStatus:
    """
    Valida un cambio de estado y devuelve el estado destino.

    Raises:
        InvalidTransition: estado desconocido o intento de salir de 'cancelado'
    """
    old_status = parse_status(current)
    new_status = parse_status(new)
    if old_status == OrderStatus.cancelado and new_status != OrderStatus.cancelado:
        raise InvalidTransition("Un pedido cancelado no puede cambiar de estado")
    return new_status


def is_backward_move(old: Optional[str], new: str) -> bool:
    if old is None:
        return False
    return (parse_status(old), parse_status(new)) in BACKWARD_MOVES


def triggers_inventory_deduction(old: Optional[str], new: str) -> bool:
    """
    Sólo la entrada a 'terminado' descuenta filamento, y nunca desde un retroceso.
    """
    if parse_status(new) != OrderStatus.terminado:
        return False
    if old is not None and parse_status(old) == OrderStatus.terminado:
        return False
    return not is_backward_move(old, new)
