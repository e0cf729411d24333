from enum import Enum


class Role(str, Enum):
    owner = "owner"
    admin = "admin"
    operador = "operador"
    lector = "lector"


ADMIN_ROLES = {Role.owner, Role.admin}
WRITER_ROLES = {Role.owner, Role.admin, Role.operador}
