# app/modules/comun.py
"""Piezas compartidas por las pantallas de novedades, incapacidades y enfermería."""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from colorama import Fore, Style

from .. import ui
from ..database import DatabaseManager
from ..errors import AppError, ValidationError
from ..exportacion import exportar_excel
from ..permisos import Accion
from ..sesion import GestorSesion

logger = logging.getLogger("novedades.modulos")


class Campo:
    def __init__(self, clave: str, etiqueta: str, validador: Optional[Callable[[str], bool]] = None,
                 mensaje_error: str = "Valor no válido.", opciones: Optional[List[str]] = None,
                 opcional: bool = False):
        self.clave = clave
        self.etiqueta = etiqueta
        self.validador = validador
        self.mensaje_error = mensaje_error
        self.opciones = opciones
        self.opcional = opcional


def exigir_campos(datos: Dict, requeridos: Iterable[str]):
    faltantes = [c for c in requeridos if not str(datos.get(c) or "").strip()]
    if faltantes:
        raise ValidationError(f"Campos obligatorios vacíos: {', '.join(faltantes)}")


def filtrar_registros(registros: List[Dict], termino: str, campos: Sequence[str]) -> List[Dict]:
    termino = (termino or "").strip().lower()
    if not termino:
        return registros
    return [r for r in registros if any(termino in str(r.get(c) or "").lower() for c in campos)]


# --- Operaciones sobre tablas de registros ---
def listar_registros(db: DatabaseManager, tabla: str, termino: str, campos_busqueda: Sequence[str]) -> List[Dict]:
    registros = db.select(tabla, orden="created_at", descendente=True)
    return filtrar_registros(registros, termino, campos_busqueda)


def crear_registro(db: DatabaseManager, gestor: GestorSesion, tabla: str, datos: Dict, etiqueta: str) -> str:
    datos = dict(datos, created_by=gestor.usuario_actual_id)
    registro_id = db.insert(tabla, [datos])[0]
    db.registrar_movimiento_sistema(f"Creación de {etiqueta}", f"Registro {registro_id} creado en {tabla}.", gestor.sesion.identidad.email)
    return registro_id


def actualizar_registro(db: DatabaseManager, gestor: GestorSesion, tabla: str, registro_id: str,
                        datos: Dict, etiqueta: str) -> bool:
    datos = {k: v for k, v in datos.items() if k not in ("id", "created_at", "created_by")}
    actualizado = db.update(tabla, registro_id, datos)
    if actualizado:
        db.registrar_movimiento_sistema(f"Edición de {etiqueta}", f"Registro {registro_id} actualizado en {tabla}.", gestor.sesion.identidad.email)
    return actualizado


def eliminar_registro(db: DatabaseManager, gestor: GestorSesion, tabla: str, registro_id: str, etiqueta: str) -> bool:
    eliminado = db.delete(tabla, registro_id)
    if eliminado:
        db.registrar_movimiento_sistema(f"Eliminación de {etiqueta}", f"Registro {registro_id} eliminado de {tabla}.", gestor.sesion.identidad.email)
    return eliminado


def exportar_registros(db: DatabaseManager, gestor: GestorSesion, tabla: str, directorio: str,
                       titulo_hoja: str, columnas: Sequence[Tuple[str, str]]) -> str:
    registros = db.select(tabla, orden="created_at", descendente=True)
    ruta = exportar_excel(directorio, tabla, titulo_hoja, columnas, registros)
    db.registrar_movimiento_sistema("Exportación", f"Exportados {len(registros)} registros de {tabla}.", gestor.sesion.identidad.email)
    return ruta


# --- Interacción por consola ---
def completar_formulario(titulo: str, campos: List[Campo], gestor: GestorSesion,
                         iniciales: Optional[Dict] = None) -> Optional[Dict]:
    """Recorre los campos uno a uno. Devuelve None si el usuario cancela."""
    valores = dict(iniciales or {})
    etiquetas = [c.etiqueta for c in campos]
    vista = {c.etiqueta: valores[c.clave] for c in campos if valores.get(c.clave) not in (None, "")}
    indice = 0
    try:
        while indice < len(campos):
            campo = campos[indice]
            ui.mostrar_formulario_interactivo(titulo, etiquetas, vista, indice, gestor)
            actual = valores.get(campo.clave)
            actual = str(actual) if actual not in (None, "") else ""

            if campo.opciones is not None:
                if not campo.opciones:
                    ui.notificar_error(f"No hay opciones activas para '{campo.etiqueta}'. Revise la configuración.")
                    ui.pausar_pantalla(); return None
                valor = ui.seleccionar_opcion(campo.etiqueta, campo.opciones, actual or None)
                if valor is None:
                    print(Fore.RED + "Selección no válida."); ui.pausar_pantalla(); continue
            else:
                sugerencia = f" (Enter = {actual})" if actual else ""
                valor = ui.solicitar_input(Fore.YELLOW + f"{campo.etiqueta}{sugerencia}: ", default=actual)

            if not valor:
                if campo.opcional:
                    valores[campo.clave] = None; vista.pop(campo.etiqueta, None); indice += 1; continue
                print(Fore.RED + "Este campo no puede estar vacío."); ui.pausar_pantalla(); continue
            if campo.validador and not campo.validador(valor):
                print(Fore.RED + campo.mensaje_error); ui.pausar_pantalla(); continue

            valores[campo.clave] = valor
            vista[campo.etiqueta] = valor
            indice += 1
    except KeyboardInterrupt:
        print(Fore.CYAN + "\n\n🚫 Operación cancelada.")
        return None
    return valores


def seleccionar_registro(registros: List[Dict], nombre: str) -> Optional[Dict]:
    entrada = ui.solicitar_input(Fore.YELLOW + f"\nIngrese el número del {nombre}: ")
    try:
        indice = int(entrada) - 1
    except ValueError:
        ui.notificar_error("Entrada no válida. Debe ser un número."); return None
    if 0 <= indice < len(registros):
        return registros[indice]
    ui.notificar_error("Número no encontrado."); return None


class DefinicionModulo:
    """Describe una pantalla de registros para `menu_registros`."""
    def __init__(self, titulo: str, nombre: str, modulo, columnas, columnas_detalle,
                 listar, crear, actualizar, eliminar, exportar, formulario, confirmacion: str):
        self.titulo = titulo
        self.nombre = nombre
        self.modulo = modulo
        self.columnas = columnas
        self.columnas_detalle = columnas_detalle
        self.listar = listar
        self.crear = crear
        self.actualizar = actualizar
        self.eliminar = eliminar
        self.exportar = exportar
        self.formulario = formulario
        self.confirmacion = confirmacion


def _ejecutar(operacion: Callable, mensaje_exito: str, mensaje_error: str):
    """Ejecuta una operación de escritura y notifica el resultado."""
    try:
        resultado = operacion()
    except AppError as e:
        logger.warning("%s: %s", mensaje_error, e.mensaje)
        ui.notificar_error(f"{mensaje_error}: {e.mensaje}")
        return None
    if resultado:
        ui.notificar_exito(mensaje_exito)
    elif resultado is not None:
        ui.notificar_error(f"{mensaje_error}: el registro ya no existe.")
    return resultado


def _cargar_formulario(definicion: DefinicionModulo, *args) -> Optional[Dict]:
    """Pide los datos del formulario; los catálogos pueden no estar disponibles."""
    try:
        return definicion.formulario(*args)
    except AppError as e:
        logger.warning("No se pudo cargar el formulario de %s: %s", definicion.nombre, e.mensaje)
        ui.notificar_error(f"No se pudo cargar el formulario: {e.mensaje}")
        return None


def menu_registros(db: DatabaseManager, gestor: GestorSesion, ajustes, definicion: DefinicionModulo):
    termino = ""
    while True:
        ui.mostrar_encabezado(definicion.titulo, gestor=gestor)
        try:
            registros = definicion.listar(db, gestor, termino)
        except AppError as e:
            ui.notificar_error(f"Error al cargar los registros: {e.mensaje}"); ui.pausar_pantalla(); return
        if registros is None:
            ui.pausar_pantalla(); return
        if termino:
            print(Fore.CYAN + f"Filtro: '{termino}' ({len(registros)} resultados)" + Style.RESET_ALL)
        ui.mostrar_tabla(definicion.columnas, registros)

        opciones = {}
        opciones[str(len(opciones) + 1)] = ("🔎 Buscar", "buscar")
        opciones[str(len(opciones) + 1)] = ("🔍 Ver detalle", "detalle")
        if gestor.tiene_permiso(definicion.modulo, Accion.CREATE):
            opciones[str(len(opciones) + 1)] = (f"➕ Nuevo {definicion.nombre}", "crear")
        if gestor.tiene_permiso(definicion.modulo, Accion.UPDATE):
            opciones[str(len(opciones) + 1)] = ("✏️  Editar", "editar")
        if gestor.tiene_permiso(definicion.modulo, Accion.DELETE):
            opciones[str(len(opciones) + 1)] = ("🗑️  Eliminar", "eliminar")
        opciones[str(len(opciones) + 1)] = ("📥 Exportar a Excel", "exportar")
        opciones[str(len(opciones) + 1)] = ("↩️  Volver", "volver")
        for key, (texto, _) in opciones.items():
            print(Fore.YELLOW + f"{key}." + Style.RESET_ALL + f" {texto}")
        ui.mostrar_menu([])

        opcion = ui.solicitar_input(Fore.YELLOW + "Seleccione una acción: ")
        if opcion not in opciones:
            print(Fore.RED + "Opción no válida."); ui.pausar_pantalla(); continue
        accion = opciones[opcion][1]

        if accion == "volver":
            break
        elif accion == "buscar":
            termino = ui.solicitar_input(Fore.YELLOW + "Texto a buscar (Enter para limpiar): ")
            continue
        elif accion == "detalle":
            registro = seleccionar_registro(registros, definicion.nombre)
            if registro:
                ui.mostrar_panel_info(f"Detalle de {definicion.nombre}", {t: registro.get(c) for c, t in definicion.columnas_detalle})
        elif accion == "crear":
            datos = _cargar_formulario(definicion, db, gestor)
            if datos is not None:
                _ejecutar(lambda: definicion.crear(db, gestor, datos),
                          "Registro creado exitosamente.", f"Error al guardar {definicion.nombre}")
        elif accion == "editar":
            registro = seleccionar_registro(registros, definicion.nombre)
            if registro:
                datos = _cargar_formulario(definicion, db, gestor, registro)
                if datos is not None:
                    _ejecutar(lambda: definicion.actualizar(db, gestor, registro["id"], datos),
                              "Registro actualizado exitosamente.", f"Error al actualizar {definicion.nombre}")
        elif accion == "eliminar":
            registro = seleccionar_registro(registros, definicion.nombre)
            if registro:
                valor = str(registro.get(definicion.confirmacion))
                confirmacion = ui.solicitar_input(Fore.RED + f"¿Seguro que desea eliminar este registro? Escriba '{valor}' para confirmar: ")
                if confirmacion == valor:
                    _ejecutar(lambda: definicion.eliminar(db, gestor, registro["id"]),
                              "Registro eliminado exitosamente.", f"Error al eliminar {definicion.nombre}")
                else:
                    print(Fore.YELLOW + "\nLa confirmación no coincide. Operación cancelada.")
        elif accion == "exportar":
            try:
                ruta = definicion.exportar(db, gestor, ajustes.export_path)
            except (AppError, OSError) as e:
                ui.notificar_error(f"Error al exportar: {e}")
            else:
                if ruta:
                    ui.notificar_exito(f"Archivo exportado exitosamente: {ruta}")
        ui.pausar_pantalla()
