# app/modules/configuracion.py
from typing import Dict, List, Optional

from colorama import Fore, Style

from .. import ui
from ..config import CATALOGOS
from ..database import DatabaseManager
from ..errors import AppError, ValidationError
from ..guardia import requiere_permiso
from ..permisos import Accion, Modulo
from ..sesion import GestorSesion
from ..validators import validar_campo_general
from .comun import filtrar_registros, seleccionar_registro

COLUMNAS_CATALOGO = [("nombre", "NOMBRE", 40), ("estado", "ESTADO", 10), ("created_at", "CREADO", 20)]
MENSAJE_NO_EXISTE = "El elemento ya no existe."


def _validar_catalogo(tabla: str):
    if tabla not in CATALOGOS:
        raise ValueError(f"Catálogo desconocido: {tabla}")


def normalizar_nombre(nombre: str) -> str:
    nombre = " ".join((nombre or "").split())
    return nombre[:1].upper() + nombre[1:]


def _validar_nombre(nombre: str) -> str:
    nombre = normalizar_nombre(nombre)
    if not nombre:
        raise ValidationError("El nombre no puede estar vacío.")
    if not validar_campo_general(nombre):
        raise ValidationError("El nombre solo admite letras, números y los caracteres - _ . ,")
    return nombre


def opciones_activas(db: DatabaseManager, tabla: str) -> List[str]:
    """Nombres activos de un catálogo, ordenados, para los formularios."""
    _validar_catalogo(tabla)
    return [item["nombre"] for item in db.select(tabla, {"activo": True}, orden="nombre")]


@requiere_permiso(Modulo.CONFIGURACION, Accion.READ)
def listar_catalogo(db: DatabaseManager, gestor: GestorSesion, tabla: str, termino: str = "") -> List[Dict]:
    _validar_catalogo(tabla)
    items = db.select(tabla, orden="nombre")
    for item in items:
        item["estado"] = "Activo" if item["activo"] else "Inactivo"
    return filtrar_registros(items, termino, ("nombre",))


@requiere_permiso(Modulo.CONFIGURACION, Accion.CREATE)
def agregar_item(db: DatabaseManager, gestor: GestorSesion, tabla: str, nombre: str, activo: bool = True) -> str:
    _validar_catalogo(tabla)
    nombre = _validar_nombre(nombre)
    item_id = db.insert(tabla, [{"nombre": nombre, "activo": activo}])[0]
    db.registrar_movimiento_sistema("Configuración", f"Añadido a {CATALOGOS[tabla]}: '{nombre}'", gestor.sesion.identidad.email)
    return item_id


@requiere_permiso(Modulo.CONFIGURACION, Accion.UPDATE)
def renombrar_item(db: DatabaseManager, gestor: GestorSesion, tabla: str, item_id: str, nombre: str) -> bool:
    _validar_catalogo(tabla)
    nombre = _validar_nombre(nombre)
    actualizado = db.update(tabla, item_id, {"nombre": nombre})
    if actualizado:
        db.registrar_movimiento_sistema("Configuración", f"Modificado en {CATALOGOS[tabla]}: '{nombre}'", gestor.sesion.identidad.email)
    return actualizado


@requiere_permiso(Modulo.CONFIGURACION, Accion.UPDATE)
def cambiar_estado_item(db: DatabaseManager, gestor: GestorSesion, tabla: str, item_id: str) -> Optional[bool]:
    """Alterna activo/inactivo. Devuelve el nuevo estado, o None si el elemento no existe."""
    _validar_catalogo(tabla)
    filas = db.select(tabla, {"id": item_id})
    if not filas:
        return None
    nuevo_estado = not filas[0]["activo"]
    db.update(tabla, item_id, {"activo": nuevo_estado})
    accion = "activado" if nuevo_estado else "inactivado"
    db.registrar_movimiento_sistema("Configuración", f"{CATALOGOS[tabla]}: '{filas[0]['nombre']}' {accion}", gestor.sesion.identidad.email)
    return nuevo_estado


@requiere_permiso(Modulo.CONFIGURACION, Accion.DELETE)
def eliminar_item(db: DatabaseManager, gestor: GestorSesion, tabla: str, item_id: str) -> bool:
    _validar_catalogo(tabla)
    eliminado = db.delete(tabla, item_id)
    if eliminado:
        db.registrar_movimiento_sistema("Configuración", f"Eliminado de {CATALOGOS[tabla]}: id {item_id}", gestor.sesion.identidad.email)
    return eliminado


# --- Pantallas ---
def menu_configuracion(db: DatabaseManager, gestor: GestorSesion, ajustes=None):
    """Menú principal para la configuración de catálogos."""
    tablas = list(CATALOGOS)
    while True:
        ui.mostrar_encabezado("Configuración del Sistema", gestor=gestor)
        ui.mostrar_menu([f"Gestionar {CATALOGOS[t]}" for t in tablas] + ["Volver al Menú Principal"])
        opcion = ui.solicitar_input(Fore.YELLOW + "Seleccione una opción: ")
        try:
            indice = int(opcion) - 1
        except ValueError:
            indice = -1
        if indice == len(tablas):
            break
        if 0 <= indice < len(tablas):
            gestionar_catalogo(db, gestor, tablas[indice])
        else:
            print(Fore.RED + "Opción no válida."); ui.pausar_pantalla()


def gestionar_catalogo(db: DatabaseManager, gestor: GestorSesion, tabla: str):
    """Flujo genérico para gestionar un catálogo."""
    nombre_amigable = CATALOGOS[tabla]
    termino = ""
    while True:
        ui.mostrar_encabezado(f"Gestionar {nombre_amigable}", gestor=gestor)
        try:
            items = listar_catalogo(db, gestor, tabla, termino)
        except AppError as e:
            ui.notificar_error(f"Error al cargar los elementos: {e.mensaje}"); ui.pausar_pantalla(); return
        if items is None:
            ui.pausar_pantalla(); return
        if termino:
            print(Fore.CYAN + f"Filtro: '{termino}'" + Style.RESET_ALL)
        ui.mostrar_tabla(COLUMNAS_CATALOGO, items, vacio="No hay elementos en este catálogo.")

        opciones = ["Añadir nuevo", "Modificar", "Activar/Inactivar", "Eliminar", "Buscar", "Volver"]
        ui.mostrar_menu(opciones)
        opcion = ui.solicitar_input(Fore.YELLOW + "\nSeleccione una acción: ").strip()

        try:
            if opcion == '1': _añadir_item(db, gestor, tabla, nombre_amigable)
            elif opcion == '2': _modificar_item(db, gestor, tabla, items)
            elif opcion == '3': _cambiar_estado(db, gestor, tabla, items)
            elif opcion == '4': _eliminar_item(db, gestor, tabla, items)
            elif opcion == '5':
                termino = ui.solicitar_input(Fore.YELLOW + "Texto a buscar (Enter para limpiar): "); continue
            elif opcion == '6': break
            else: print(Fore.RED + "Opción no válida.")
        except AppError as e:
            ui.notificar_error(f"Error al guardar el elemento: {e.mensaje}")
        ui.pausar_pantalla()


def _añadir_item(db: DatabaseManager, gestor: GestorSesion, tabla: str, nombre: str):
    ui.mostrar_encabezado(f"Añadir a {nombre}", gestor=gestor)
    nuevo_valor = ui.solicitar_input(Fore.YELLOW + "Ingrese el nombre del nuevo elemento: ")
    if not nuevo_valor:
        print(Fore.YELLOW + "\nOperación cancelada. El nombre no puede estar vacío."); return
    if agregar_item(db, gestor, tabla, nuevo_valor):
        ui.notificar_exito("Elemento creado exitosamente.")


def _modificar_item(db: DatabaseManager, gestor: GestorSesion, tabla: str, items: list):
    item = seleccionar_registro(items, "elemento")
    if not item: return
    print(f"Valor actual: {Fore.CYAN}{item['nombre']}{Style.RESET_ALL}")
    nuevo_valor = ui.solicitar_input(Fore.YELLOW + "Ingrese el nuevo valor: ")
    if nuevo_valor and nuevo_valor.lower() != item['nombre'].lower():
        actualizado = renombrar_item(db, gestor, tabla, item['id'], nuevo_valor)
        if actualizado:
            ui.notificar_exito("Elemento actualizado exitosamente.")
        elif actualizado is not None:
            ui.notificar_error(MENSAJE_NO_EXISTE)
    else:
        print(Fore.YELLOW + "\nOperación cancelada o sin cambios.")


def _cambiar_estado(db: DatabaseManager, gestor: GestorSesion, tabla: str, items: list):
    item = seleccionar_registro(items, "elemento")
    if not item: return
    nuevo_estado = cambiar_estado_item(db, gestor, tabla, item['id'])
    if nuevo_estado is not None:
        ui.notificar_exito(f"Elemento {'activado' if nuevo_estado else 'desactivado'} exitosamente.")
    elif gestor.tiene_permiso(Modulo.CONFIGURACION, Accion.UPDATE):
        ui.notificar_error(MENSAJE_NO_EXISTE)


def _eliminar_item(db: DatabaseManager, gestor: GestorSesion, tabla: str, items: list):
    item = seleccionar_registro(items, "elemento")
    if not item: return
    confirmacion = ui.solicitar_input(Fore.RED + f"¿Seguro que desea eliminar '{item['nombre']}'? Escriba el valor para confirmar: ")
    if confirmacion == item['nombre']:
        eliminado = eliminar_item(db, gestor, tabla, item['id'])
        if eliminado:
            ui.notificar_exito("Elemento eliminado exitosamente.")
        elif eliminado is not None:
            ui.notificar_error(MENSAJE_NO_EXISTE)
    else:
        print(Fore.YELLOW + "\nLa confirmación no coincide. Operación cancelada.")
