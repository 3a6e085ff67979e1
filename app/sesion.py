# app/sesion.py
"""
Sesión del usuario autenticado.

La sesión se guarda en un archivo JSON local con dos claves separadas: una
marca de "autenticado" y el bloque {id, email, role}. Esto permite reabrir la
consola sin volver a pedir credenciales; es una comodidad, no una barrera de
seguridad (cualquiera con acceso al archivo puede editarlo). Nunca se guardan
contraseñas ni hashes.
"""
import json
import logging
import os
from enum import Enum
from typing import Callable, Dict, List, Optional

from . import ui
from .config import CLAVE_MARCA_SESION, CLAVE_USUARIO_SESION, VALOR_MARCA_SESION
from .errors import BackendUnavailable, LoginInProgress
from .permisos import Accion, Modulo, PermisoModulo, permisos_desde_filas, tiene_permiso

logger = logging.getLogger("novedades.sesion")


class Identidad:
    def __init__(self, id: str, email: str, role: str):
        self.id = id
        self.email = email
        self.role = role

    def to_dict(self) -> Dict:
        return {"id": self.id, "email": self.email, "role": self.role}

    @classmethod
    def desde_dict(cls, datos: Dict) -> "Identidad":
        if not isinstance(datos, dict) or not all(datos.get(k) for k in ("id", "email", "role")):
            raise ValueError("Bloque de identidad incompleto")
        return cls(str(datos["id"]), str(datos["email"]), str(datos["role"]))

    def __eq__(self, other):
        return isinstance(other, Identidad) and self.to_dict() == other.to_dict()


class Sesion:
    def __init__(self, identidad: Identidad, permisos: Optional[List[PermisoModulo]] = None):
        self.identidad = identidad
        self.permisos = list(permisos or [])

    @property
    def usuario_id(self) -> str:
        return self.identidad.id

    @property
    def rol(self) -> str:
        return self.identidad.role


class AlmacenSesion:
    """Almacenamiento clave/valor persistente en un archivo JSON."""
    def __init__(self, ruta: str):
        self.ruta = ruta

    def _leer(self) -> Dict[str, str]:
        if not os.path.exists(self.ruta):
            return {}
        try:
            with open(self.ruta, "r", encoding="utf-8") as f:
                datos = json.load(f)
        except (OSError, ValueError):
            logger.warning("Archivo de sesión ilegible: %s", self.ruta)
            return {}
        return datos if isinstance(datos, dict) else {}

    def _escribir(self, datos: Dict[str, str]):
        directorio = os.path.dirname(self.ruta)
        if directorio and not os.path.exists(directorio):
            os.makedirs(directorio)
        with open(self.ruta, "w", encoding="utf-8") as f:
            json.dump(datos, f, ensure_ascii=False)

    def get(self, clave: str) -> Optional[str]:
        return self._leer().get(clave)

    def set(self, clave: str, valor: str):
        datos = self._leer()
        datos[clave] = valor
        self._escribir(datos)

    def remove(self, clave: str):
        datos = self._leer()
        if clave in datos:
            del datos[clave]
            self._escribir(datos)


class EstadoSesion(Enum):
    ANONIMO = "anonimo"
    AUTENTICANDO = "autenticando"
    AUTENTICADO = "autenticado"


class GestorSesion:
    """
    Orquesta el inicio y cierre de sesión.

    `autenticador` es cualquier objeto con `autenticar(email, contrasena)` que
    devuelva una `Identidad`; `cargar_permisos` recibe un id de usuario y
    devuelve sus filas de user_permissions.
    """
    def __init__(self, autenticador, cargar_permisos: Callable[[str], List[Dict]], almacen: AlmacenSesion):
        self.autenticador = autenticador
        self.cargar_permisos = cargar_permisos
        self.almacen = almacen
        self.sesion: Optional[Sesion] = None
        self.estado = EstadoSesion.ANONIMO

    @property
    def autenticado(self) -> bool:
        return self.sesion is not None

    @property
    def permisos(self) -> List[PermisoModulo]:
        return self.sesion.permisos if self.sesion else []

    @property
    def usuario_actual_id(self) -> Optional[str]:
        return self.sesion.usuario_id if self.sesion else None

    @property
    def rol(self) -> Optional[str]:
        return self.sesion.rol if self.sesion else None

    def tiene_permiso(self, modulo: Modulo, accion: Accion) -> bool:
        if self.sesion is None:
            return False
        return tiene_permiso(self.sesion.rol, self.sesion.permisos, modulo, accion)

    def iniciar_sesion(self, email: str, contrasena: str) -> Identidad:
        if self.estado is EstadoSesion.AUTENTICANDO:
            raise LoginInProgress()
        self.estado = EstadoSesion.AUTENTICANDO
        try:
            identidad = self.autenticador.autenticar(email, contrasena)
        except Exception:
            self.estado = EstadoSesion.AUTENTICADO if self.sesion else EstadoSesion.ANONIMO
            raise
        self.sesion = Sesion(identidad)
        self._persistir(identidad)
        self.estado = EstadoSesion.AUTENTICADO
        self.recargar_permisos()
        logger.info("Sesión iniciada para el usuario %s (%s).", identidad.id, identidad.role)
        ui.notificar_exito("Inicio de sesión exitoso.")
        return identidad

    def recargar_permisos(self) -> bool:
        """Vuelve a consultar los permisos. Si falla, la sesión sigue sin permisos."""
        if self.sesion is None:
            return False
        try:
            filas = self.cargar_permisos(self.sesion.usuario_id) or []
        except BackendUnavailable:
            logger.exception("No se pudieron cargar los permisos de %s.", self.sesion.usuario_id)
            self.sesion.permisos = []
            ui.notificar_aviso("No se pudieron cargar sus permisos. Intente recargarlos más tarde.")
            return False
        self.sesion.permisos = permisos_desde_filas(filas)
        return True

    def cerrar_sesion(self):
        if self.sesion is None and self.estado is EstadoSesion.ANONIMO:
            return
        logger.info("Sesión cerrada para el usuario %s.", self.usuario_actual_id)
        self.sesion = None
        self.estado = EstadoSesion.ANONIMO
        self._limpiar_almacen()
        ui.notificar_exito("Sesión cerrada.")

    def restaurar(self) -> bool:
        """Reconstruye la sesión guardada sin consultar credenciales."""
        marca = self.almacen.get(CLAVE_MARCA_SESION)
        datos_usuario = self.almacen.get(CLAVE_USUARIO_SESION)
        if marca != VALOR_MARCA_SESION or not datos_usuario:
            return False
        try:
            identidad = Identidad.desde_dict(json.loads(datos_usuario))
        except (ValueError, TypeError):
            logger.warning("Sesión guardada corrupta; se descarta.")
            self._limpiar_almacen()
            return False
        self.sesion = Sesion(identidad)
        self.estado = EstadoSesion.AUTENTICADO
        logger.info("Sesión restaurada para el usuario %s.", identidad.id)
        self.recargar_permisos()
        return True

    def _persistir(self, identidad: Identidad):
        try:
            self.almacen.set(CLAVE_MARCA_SESION, VALOR_MARCA_SESION)
            self.almacen.set(CLAVE_USUARIO_SESION, json.dumps(identidad.to_dict()))
        except OSError:
            logger.exception("No se pudo guardar la sesión en %s.", self.almacen.ruta)
            ui.notificar_aviso("No se pudo guardar la sesión; deberá iniciar sesión de nuevo al reiniciar.")

    def _limpiar_almacen(self):
        try:
            self.almacen.remove(CLAVE_MARCA_SESION)
            self.almacen.remove(CLAVE_USUARIO_SESION)
        except OSError:
            logger.exception("No se pudo limpiar el archivo de sesión %s.", self.almacen.ruta)
            ui.notificar_error("No se pudo limpiar la sesión guardada.")
