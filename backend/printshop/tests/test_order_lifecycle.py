import pytest

from printshop.core.order_lifecycle import (
    InvalidTransition,
    OrderStatus,
    advance,
    retreat,
    status_label,
    triggers_inventory_deduction,
    validate_transition,
)


def test_advance_walks_the_pipeline():
    assert advance("pendiente") == OrderStatus.en_proceso
    assert advance("en_proceso") == OrderStatus.terminado
    assert advance("terminado") == OrderStatus.entregado


def test_advance_from_last_is_noop():
    assert advance("entregado") == OrderStatus.entregado


def test_retreat_from_first_is_noop():
    assert retreat("pendiente") == OrderStatus.pendiente
    assert retreat("entregado") == OrderStatus.terminado


def test_cancelled_does_not_move():
    assert advance("cancelado") == OrderStatus.cancelado
    assert retreat("cancelado") == OrderStatus.cancelado
    with pytest.raises(InvalidTransition):
        validate_transition("cancelado", "pendiente")


@pytest.mark.parametrize("status", ["pendiente", "en_proceso", "terminado", "entregado"])
def test_cancel_reachable_from_every_state(status):
    assert validate_transition(status, "cancelado") == OrderStatus.cancelado


def test_unknown_status_rejected():
    with pytest.raises(InvalidTransition):
        validate_transition("pendiente", "perdido")


@pytest.mark.parametrize("old", ["pendiente", "en_proceso", None])
def test_entering_terminado_deducts(old):
    assert triggers_inventory_deduction(old, "terminado")


@pytest.mark.parametrize(
    "old,new",
    [
        ("entregado", "terminado"),
        ("terminado", "en_proceso"),
        ("entregado", "en_proceso"),
        ("terminado", "entregado"),
        ("pendiente", "en_proceso"),
        ("terminado", "terminado"),
    ],
)
def test_other_moves_do_not_deduct(old, new):
    assert not triggers_inventory_deduction(old, new)


def test_labels():
    assert status_label("en_proceso") == "Imprimiendo"
    assert status_label("terminado") == "Listo"
    assert status_label("raro") == "raro"
