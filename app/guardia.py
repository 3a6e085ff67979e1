# app/guardia.py
from enum import Enum
from functools import wraps
from typing import Callable, Optional

from . import ui
from .errors import Forbidden
from .permisos import Accion, Modulo
from .sesion import GestorSesion


class Decision(Enum):
    RENDERIZAR = "renderizar"
    REDIRIGIR_LOGIN = "redirigir_login"
    ACCESO_DENEGADO = "acceso_denegado"


def evaluar_ruta(gestor: GestorSesion, modulo: Optional[Modulo] = None, accion: Accion = Accion.READ) -> Decision:
    """Se evalúa en cada navegación; no se guarda el resultado."""
    if not gestor.autenticado:
        return Decision.REDIRIGIR_LOGIN
    if modulo is not None and not gestor.tiene_permiso(modulo, accion):
        return Decision.ACCESO_DENEGADO
    return Decision.RENDERIZAR


def exigir_permiso(gestor: GestorSesion, modulo: Modulo, accion: Accion):
    if evaluar_ruta(gestor, modulo, accion) is not Decision.RENDERIZAR:
        raise Forbidden(Modulo(modulo), Accion(accion))


def requiere_permiso(modulo: Modulo, accion: Accion) -> Callable:
    """Protege operaciones con firma (db, gestor, ...)."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(db, gestor: GestorSesion, *args, **kwargs):
            decision = evaluar_ruta(gestor, modulo, accion)
            if decision is Decision.REDIRIGIR_LOGIN:
                ui.notificar_error("No hay una sesión activa. Inicie sesión para continuar.")
                return None
            if decision is Decision.ACCESO_DENEGADO:
                ui.mostrar_acceso_denegado(modulo, accion)
                ui.notificar_error(Forbidden.mensaje_usuario)
                return None
            return func(db, gestor, *args, **kwargs)
        return wrapper
    return decorator
