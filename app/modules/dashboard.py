# app/modules/dashboard.py
from typing import Dict

from colorama import Fore, Style

from .. import ui
from ..config import NOMBRES_MODULOS, ROL_ADMIN
from ..database import DatabaseManager
from ..guardia import requiere_permiso
from ..permisos import Accion, Modulo
from ..sesion import GestorSesion

MODULOS_REGISTROS = [Modulo.NOVEDADES, Modulo.INCAPACIDADES, Modulo.ENFERMERIA]


def obtener_color_por_cantidad(cantidad: int) -> str:
    return Fore.WHITE if cantidad == 0 else Fore.RED


def _tarjeta_visible(gestor: GestorSesion, clave: str) -> bool:
    if clave == Modulo.USUARIOS.value:
        return gestor.rol == ROL_ADMIN
    return gestor.tiene_permiso(Modulo(clave), Accion.READ)


@requiere_permiso(Modulo.DASHBOARD, Accion.READ)
def obtener_estadisticas(db: DatabaseManager, gestor: GestorSesion) -> Dict[str, int]:
    """
    Totales por módulo. Solo se cuentan los módulos que el usuario puede leer;
    el total de usuarios solo se calcula para Admin. El resto queda en 0.
    """
    totales = {}
    for modulo in MODULOS_REGISTROS + [Modulo.USUARIOS]:
        tabla = "users" if modulo is Modulo.USUARIOS else modulo.value
        totales[modulo.value] = db.count(tabla) if _tarjeta_visible(gestor, modulo.value) else 0
    return totales


def mostrar_dashboard(db: DatabaseManager, gestor: GestorSesion, ajustes=None):
    """Muestra el panel de control con los totales y los gráficos."""
    ui.mostrar_encabezado("Dashboard", color=Fore.BLUE, gestor=gestor)
    totales = obtener_estadisticas(db, gestor)
    if totales is None:
        ui.pausar_pantalla(); return

    print(Fore.CYAN + "--- Resumen General ---" + Style.RESET_ALL)
    visibles = [clave for clave in totales if _tarjeta_visible(gestor, clave)]
    if not visibles:
        print(Fore.YELLOW + "  No tiene acceso a ningún módulo de registros.")
    for clave in visibles:
        etiqueta = f"Total {NOMBRES_MODULOS[clave]}:"
        print(f"  {Fore.WHITE}{etiqueta:<28}{obtener_color_por_cantidad(totales[clave])}{totales[clave]}{Style.RESET_ALL}")
    print("-" * 40)

    datos_grafico = {NOMBRES_MODULOS[m.value]: totales[m.value] for m in MODULOS_REGISTROS}
    print()
    ui.mostrar_grafico_barras("Registros por Módulo", datos_grafico)
    print()
    ui.mostrar_grafico_distribucion("Distribución de Registros", datos_grafico)
    ui.pausar_pantalla()
