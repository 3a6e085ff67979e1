# app/permisos.py
"""
Modelo de permisos por módulo.

El rol Admin tiene todos los permisos de forma implícita y la lectura del
dashboard está permitida para cualquier usuario. Para el resto, cada usuario
tiene como máximo un registro por módulo con cuatro permisos independientes
(crear, leer, actualizar, eliminar). Si no hay registro, no hay permisos.
"""
import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from .config import ROL_ADMIN

logger = logging.getLogger("novedades.permisos")


class Modulo(str, Enum):
    DASHBOARD = "dashboard"
    NOVEDADES = "novedades"
    INCAPACIDADES = "incapacidades"
    ENFERMERIA = "enfermeria"
    USUARIOS = "usuarios"
    CONFIGURACION = "configuracion"


class Accion(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class PermisoModulo:
    def __init__(self, module: Modulo, can_create: bool = False, can_read: bool = False,
                 can_update: bool = False, can_delete: bool = False):
        self.module = Modulo(module)
        self.can_create = bool(can_create)
        self.can_read = bool(can_read)
        self.can_update = bool(can_update)
        self.can_delete = bool(can_delete)

    def permite(self, accion: Accion) -> bool:
        accion = Accion(accion)
        if accion is Accion.CREATE: return self.can_create
        if accion is Accion.READ: return self.can_read
        if accion is Accion.UPDATE: return self.can_update
        return self.can_delete

    def to_dict(self) -> Dict:
        return {
            "module": self.module.value,
            "can_create": self.can_create,
            "can_read": self.can_read,
            "can_update": self.can_update,
            "can_delete": self.can_delete,
        }

    @classmethod
    def desde_fila(cls, fila: Dict) -> "PermisoModulo":
        return cls(fila["module"], fila.get("can_create"), fila.get("can_read"),
                   fila.get("can_update"), fila.get("can_delete"))

    def __eq__(self, other):
        return isinstance(other, PermisoModulo) and self.to_dict() == other.to_dict()

    def __repr__(self):
        flags = "".join(letra if activo else "-" for letra, activo in (
            ("C", self.can_create), ("R", self.can_read), ("U", self.can_update), ("D", self.can_delete)))
        return f"<PermisoModulo {self.module.value} {flags}>"


def permisos_desde_filas(filas: Iterable[Dict]) -> List[PermisoModulo]:
    """Convierte filas de user_permissions descartando módulos desconocidos."""
    permisos = []
    for fila in filas:
        try:
            permisos.append(PermisoModulo.desde_fila(fila))
        except ValueError:
            logger.warning("Registro de permisos con módulo desconocido ignorado: %r", fila.get("module"))
    return permisos


def buscar_permiso(permisos: Iterable[PermisoModulo], modulo: Modulo) -> Optional[PermisoModulo]:
    return next((p for p in permisos if p.module is modulo), None)


def tiene_permiso(rol: Optional[str], permisos: Iterable[PermisoModulo],
                  modulo: Union[Modulo, str], accion: Union[Accion, str]) -> bool:
    """Decide si el rol con esos registros puede ejecutar la acción en el módulo."""
    modulo, accion = Modulo(modulo), Accion(accion)
    if rol == ROL_ADMIN:
        return True
    if modulo is Modulo.DASHBOARD and accion is Accion.READ:
        return True
    permiso = buscar_permiso(permisos, modulo)
    if permiso is None:
        return False
    return permiso.permite(accion)
