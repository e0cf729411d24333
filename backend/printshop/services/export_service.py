"""
Exportación de pedidos a CSV / Excel.

Una fila por pedido no cancelado. TOTAL VENTA y TOTAL COSTO usan los dos
accesores de order_totals por separado para no contar dos veces los ítems
de inventario.
"""
import csv
from io import BytesIO
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from printshop.core.order_lifecycle import OrderStatus, status_label
from printshop.core.order_totals import (
    calculate_order_total,
    get_additional_costs_total,
    get_real_margin,
    get_total_cost,
    order_quantity,
)
from printshop.core.serialization_helpers import row_day, short_id
from printshop.core.store import DataStore

EXPORT_COLUMNS = [
    "ID",
    "Fecha",
    "Cliente",
    "Descripción",
    "Estado",
    "Cantidad",
    "Precio Base Unit",
    "Costos Adicionales",
    "TOTAL VENTA",
    "Costo Base",
    "TOTAL COSTO",
    "MARGEN REAL",
    "Etiquetas",
]


def _client_name(order: Mapping[str, Any], clients: Mapping[str, str]) -> str:
    if order.get("client_id") and order["client_id"] in clients:
        return clients[order["client_id"]]
    return order.get("custom_client_name") or ""


def export_rows(
    orders: Iterable[Mapping[str, Any]],
    clients: Optional[Mapping[str, str]] = None,
) -> List[Dict[str, Any]]:
    clients = clients or {}
    rows = []
    for order in orders:
        if order.get("status") == OrderStatus.cancelado.value:
            continue
        day = row_day(order)
        rows.append(
            {
                "ID": short_id(order.get("id")),
                "Fecha": day.isoformat() if day else "",
                "Cliente": _client_name(order, clients),
                "Descripción": order.get("description") or "",
                "Estado": status_label(order.get("status")),
                "Cantidad": order_quantity(order),
                "Precio Base Unit": order.get("price") or 0,
                "Costos Adicionales": get_additional_costs_total(order),
                "TOTAL VENTA": calculate_order_total(order),
                "Costo Base": order.get("cost") or 0,
                "TOTAL COSTO": get_total_cost(order),
                "MARGEN REAL": get_real_margin(order),
                "Etiquetas": "; ".join(order.get("tags") or []),
            }
        )
    return rows


def orders_dataframe(orders: Iterable[Mapping[str, Any]], clients: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    return pd.DataFrame(export_rows(orders, clients), columns=EXPORT_COLUMNS)


def orders_to_csv(orders: Iterable[Mapping[str, Any]], clients: Optional[Mapping[str, str]] = None) -> str:
    # Strings entre comillas, comillas internas duplicadas
    return orders_dataframe(orders, clients).to_csv(index=False, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")


def orders_to_excel(orders: Iterable[Mapping[str, Any]], clients: Optional[Mapping[str, str]] = None) -> BytesIO:
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        orders_dataframe(orders, clients).to_excel(writer, index=False, sheet_name="Pedidos")
    output.seek(0)
    return output


def load_export_data(store: DataStore):
    orders = store.query("orders", {"status__ne": OrderStatus.cancelado.value}, order_by="created_at", descending=True)
    clients = {c["id"]: c["full_name"] for c in store.query("clients")}
    return orders, clients
