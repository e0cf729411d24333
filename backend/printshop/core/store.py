"""
Colaborador de persistencia: CRUD por nombre de tabla sobre SQLAlchemy.

Imita el contrato de un backend administrado (tablas + RPC + storage):
- cada llamada es una ida y vuelta independiente con su propio commit;
- las políticas por rol (row-level security) filtran en silencio: un update
  o delete no permitido afecta cero filas sin lanzar error, y un insert no
  permitido se rechaza;
- update devuelve las filas afectadas para que el llamador detecte el caso
  de cero filas.

Filtros: {"columna": valor} compara por igualdad (None -> IS NULL,
lista/tupla/set -> IN). Sufijos "__ne", "__gte", "__lte", "__gt", "__lt"
para otros operadores.
"""
import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from printshop.core.roles import ADMIN_ROLES, WRITER_ROLES
from printshop.core.storage import LocalStorage
from printshop.models import (
    AppSetting,
    Asset,
    AuditLog,
    Client,
    Expense,
    InventoryItem,
    Order,
    OrderStatusHistory,
    Product,
    Tag,
    User,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

TABLES = {
    "orders": Order,
    "inventory": InventoryItem,
    "products": Product,
    "clients": Client,
    "expenses": Expense,
    "assets": Asset,
    "tags": Tag,
    "audit_logs": AuditLog,
    "order_status_history": OrderStatusHistory,
    "app_settings": AppSetting,
}

# Tablas con columna de etiquetas (lista de strings)
TAGGED_TABLES = ("orders", "expenses")

# Cualquier usuario autenticado puede insertar en estas tablas
OPEN_INSERT_TABLES = {"audit_logs"}


class StoreError(Exception):
    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.table = table


class DataStore(Protocol):
    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]: ...

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[Row]: ...

    def update(self, table: str, patch: Mapping[str, Any], filters: Mapping[str, Any]) -> List[Row]: ...

    def delete(self, table: str, filters: Mapping[str, Any]) -> None: ...

    def call_procedure(self, name: str, params: Mapping[str, Any]) -> None: ...

    def decrement_stock(self, inventory_id: str, amount: float) -> List[Row]: ...

    def upload_file(self, bucket: str, path: str, data: bytes) -> str: ...

    def get_public_url(self, bucket: str, path: str) -> str: ...


def row_to_dict(obj: Any) -> Row:
    # JSON columns are copied so callers never alias ORM state
    return {column.name: copy.deepcopy(getattr(obj, column.name)) for column in obj.__table__.columns}


_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "ne": lambda col, value: col.is_not(None) if value is None else col != value,
    "gte": lambda col, value: col >= value,
    "lte": lambda col, value: col <= value,
    "gt": lambda col, value: col > value,
    "lt": lambda col, value: col < value,
}


def _build_conditions(model, filters: Optional[Mapping[str, Any]]) -> list:
    conditions = []
    for key, value in (filters or {}).items():
        name, _, op = key.partition("__")
        column = getattr(model, name, None)
        if column is None:
            raise StoreError(f"Columna desconocida: {name}", model.__tablename__)
        if op:
            if op not in _OPERATORS:
                raise StoreError(f"Operador desconocido: {op}", model.__tablename__)
            conditions.append(_OPERATORS[op](column, value))
        elif value is None:
            conditions.append(column.is_(None))
        elif isinstance(value, (list, tuple, set)):
            conditions.append(column.in_(list(value)))
        else:
            conditions.append(column == value)
    return conditions


class SqlStore:
    def __init__(self, db: Session, user: Optional[User] = None, storage: Optional[LocalStorage] = None):
        self.db = db
        self.user = user
        self.storage = storage or LocalStorage()
        self._procedures: Dict[str, Callable[[Mapping[str, Any]], None]] = {
            "rename_tag": self._rename_tag,
        }

    # --- políticas -------------------------------------------------------

    def _role(self) -> Optional[str]:
        return self.user.role if self.user is not None else None

    def _can_write(self, table: str) -> bool:
        role = self._role()
        if role is None:
            return True
        return role in {r.value for r in WRITER_ROLES}

    def _can_insert(self, table: str) -> bool:
        if table in OPEN_INSERT_TABLES and self.user is not None:
            return True
        return self._can_write(table)

    def _can_delete(self, table: str) -> bool:
        role = self._role()
        if role is None:
            return True
        return role in {r.value for r in ADMIN_ROLES}

    # --- helpers ---------------------------------------------------------

    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise StoreError(f"Tabla desconocida: {table}", table)
        return model

    def _fail(self, table: str, error: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        logger.error("store error table=%s: %s", table, error)
        return StoreError(str(getattr(error, "orig", None) or error), table)

    # --- contrato --------------------------------------------------------

    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        model = self._model(table)
        try:
            q = self.db.query(model).filter(*_build_conditions(model, filters))
            if order_by:
                column = getattr(model, order_by)
                q = q.order_by(column.desc() if descending else column.asc())
            if limit:
                q = q.limit(limit)
            return [row_to_dict(obj) for obj in q.all()]
        except SQLAlchemyError as e:
            raise self._fail(table, e)

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[Row]:
        model = self._model(table)
        if not self._can_insert(table):
            raise StoreError(f'new row violates row-level security policy for table "{table}"', table)
        try:
            objects = [model(**dict(row)) for row in rows]
            self.db.add_all(objects)
            self.db.commit()
            for obj in objects:
                self.db.refresh(obj)
            return [row_to_dict(obj) for obj in objects]
        except SQLAlchemyError as e:
            raise self._fail(table, e)

    def update(self, table: str, patch: Mapping[str, Any], filters: Mapping[str, Any]) -> List[Row]:
        model = self._model(table)
        if not self._can_write(table):
            # Igual que RLS: la política excluye las filas, no hay error
            logger.info("update on %s filtered by policy for role=%s", table, self._role())
            return []
        try:
            objects = self.db.query(model).filter(*_build_conditions(model, filters)).all()
            for obj in objects:
                for key, value in patch.items():
                    setattr(obj, key, value)
            self.db.commit()
            for obj in objects:
                self.db.refresh(obj)
            return [row_to_dict(obj) for obj in objects]
        except SQLAlchemyError as e:
            raise self._fail(table, e)

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        model = self._model(table)
        if not self._can_delete(table):
            logger.info("delete on %s filtered by policy for role=%s", table, self._role())
            return None
        try:
            self.db.query(model).filter(*_build_conditions(model, filters)).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(table, e)
        return None

    def decrement_stock(self, inventory_id: str, amount: float) -> List[Row]:
        """Descuento atómico con piso en cero, en una sola sentencia"""
        if not self._can_write("inventory"):
            return []
        remaining = InventoryItem.stock_grams - amount
        try:
            result = (
                self.db.query(InventoryItem)
                .filter(InventoryItem.id == inventory_id)
                .update(
                    {InventoryItem.stock_grams: case((remaining < 0, 0), else_=remaining)},
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("inventory", e)
        if not result:
            return []
        self.db.expire_all()
        return self.query("inventory", {"id": inventory_id})

    def call_procedure(self, name: str, params: Mapping[str, Any]) -> None:
        procedure = self._procedures.get(name)
        if procedure is None:
            raise StoreError(f"Procedimiento desconocido: {name}")
        procedure(params)

    def upload_file(self, bucket: str, path: str, data: bytes) -> str:
        return self.storage.upload_file(bucket, path, data)

    def get_public_url(self, bucket: str, path: str) -> str:
        return self.storage.get_public_url(bucket, path)

    # --- procedimientos --------------------------------------------------

    def _rename_tag(self, params: Mapping[str, Any]) -> None:
        """
        Reemplazo masivo de una etiqueta en todas las tablas con columna 'tags'.
        No toca el registro maestro de etiquetas. Un rol sin escritura recibe
        el mismo error de permisos que daría la función en la base.
        """
        old_tag = params.get("old_tag")
        new_tag = params.get("new_tag")
        if not old_tag or not new_tag:
            raise StoreError("rename_tag requiere old_tag y new_tag")
        denied = [table for table in TAGGED_TABLES if not self._can_write(table)]
        if denied:
            raise StoreError(f"permission denied for table {denied[0]}", denied[0])
        for table in TAGGED_TABLES:
            model = self._model(table)
            try:
                for obj in self.db.query(model).all():
                    tags = list(obj.tags or [])
                    if old_tag not in tags:
                        continue
                    renamed: List[str] = []
                    for tag in tags:
                        value = new_tag if tag == old_tag else tag
                        if value not in renamed:
                            renamed.append(value)
                    obj.tags = renamed
            except SQLAlchemyError as e:
                raise self._fail(table, e)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("tags", e)
