# app/menus.py
import logging
import time
from typing import Callable, Optional

from colorama import Fore, Style

from . import ui
from .config import Ajustes, ROL_ADMIN
from .database import DatabaseManager
from .errors import AppError
from .guardia import Decision, evaluar_ruta
from .modules.configuracion import menu_configuracion
from .modules.dashboard import mostrar_dashboard
from .modules.enfermeria import menu_enfermeria
from .modules.gestion_usuarios import menu_usuarios
from .modules.incapacidades import menu_incapacidades
from .modules.novedades import menu_novedades
from .permisos import Accion, Modulo
from .sesion import GestorSesion

logger = logging.getLogger("novedades.menus")

# (texto, módulo protegido, solo Admin, pantalla)
RUTAS = [
    ("📊 Dashboard", None, False, mostrar_dashboard),
    ("📝 Novedades", Modulo.NOVEDADES, False, menu_novedades),
    ("🩺 Incapacidades", Modulo.INCAPACIDADES, False, menu_incapacidades),
    ("💊 Enfermería", Modulo.ENFERMERIA, False, menu_enfermeria),
    ("👤 Usuarios", Modulo.USUARIOS, True, menu_usuarios),
    ("⚙️  Configuración", Modulo.CONFIGURACION, True, menu_configuracion),
]


def rutas_visibles(gestor: GestorSesion):
    """Entradas del menú que el usuario actual puede abrir."""
    visibles = []
    for texto, modulo, solo_admin, pantalla in RUTAS:
        if solo_admin and gestor.rol != ROL_ADMIN:
            continue
        if evaluar_ruta(gestor, modulo, Accion.READ) is Decision.RENDERIZAR:
            visibles.append((texto, modulo, pantalla))
    return visibles


def navegar(db: DatabaseManager, gestor: GestorSesion, ajustes: Ajustes,
            modulo: Optional[Modulo], pantalla: Callable) -> Decision:
    """Abre una pantalla si la guarda lo permite. La decisión se toma en cada navegación."""
    decision = evaluar_ruta(gestor, modulo, Accion.READ)
    if decision is Decision.REDIRIGIR_LOGIN:
        return decision
    if decision is Decision.ACCESO_DENEGADO:
        ui.mostrar_acceso_denegado(modulo, Accion.READ)
        ui.pausar_pantalla()
        return decision
    try:
        pantalla(db, gestor, ajustes)
    except AppError as e:
        logger.warning("Error en la pantalla %s: %s", getattr(pantalla, "__name__", pantalla), e.mensaje)
        ui.notificar_error(e.mensaje)
        ui.pausar_pantalla()
    return decision


def mostrar_menu_principal(db: DatabaseManager, gestor: GestorSesion, ajustes: Ajustes) -> bool:
    """
    Bucle principal después del inicio de sesión.
    Devuelve False si el usuario quiere salir del programa, True si cerró sesión.
    """
    while gestor.autenticado:
        ui.mostrar_encabezado("Menú Principal", gestor=gestor)

        opciones = {}
        # Menú dinámico basado en permisos
        for texto, modulo, pantalla in rutas_visibles(gestor):
            opciones[str(len(opciones) + 1)] = (texto, (modulo, pantalla))
        opciones[str(len(opciones) + 1)] = ("🔄 Recargar mis permisos", "recargar")
        opciones[str(len(opciones) + 1)] = ("↪️  Cerrar Sesión", "cerrar")
        opciones[str(len(opciones) + 1)] = ("🚪 Salir (mantener sesión)", "salir")

        for key, (texto, _) in opciones.items():
            print(Fore.YELLOW + f"{key}." + Style.RESET_ALL + f" {texto}")
        ui.mostrar_menu([])  # Solo para la línea separadora

        opcion_seleccionada = ui.solicitar_input(Fore.YELLOW + "Seleccione un módulo: ")
        if opcion_seleccionada not in opciones:
            print(Fore.RED + "\n❌ Opción no válida."); ui.pausar_pantalla(); continue

        _, destino = opciones[opcion_seleccionada]
        if destino == "recargar":
            if gestor.recargar_permisos():
                ui.notificar_exito("Permisos actualizados.")
            ui.pausar_pantalla()
        elif destino == "cerrar":
            print(Fore.GREEN + "\nCerrando sesión..."); time.sleep(0.5)
            gestor.cerrar_sesion()
            ui.pausar_pantalla()
            return True
        elif destino == "salir":
            return False
        else:
            modulo, pantalla = destino
            navegar(db, gestor, ajustes, modulo, pantalla)
    return True
