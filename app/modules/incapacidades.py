# app/modules/incapacidades.py
from datetime import datetime
from typing import Dict, List, Optional

from ..database import DatabaseManager
from ..errors import ValidationError
from ..guardia import requiere_permiso
from ..permisos import Accion, Modulo
from ..sesion import GestorSesion
from ..validators import FORMATO_FECHA, formatear_nombre, validar_cedula, validar_fecha, validar_nombre_completo
from . import comun
from .configuracion import opciones_activas

TABLA = "incapacidades"
CAMPOS_BUSQUEDA = ("numero_id", "nombre_completo", "diagnostico", "tipo_incapacidad")
CAMPOS_REQUERIDOS = ("numero_id", "nombre_completo", "fecha_inicio", "fecha_fin", "diagnostico", "tipo_incapacidad")

COLUMNAS_TABLA = [("numero_id", "IDENTIF.", 12), ("nombre_completo", "NOMBRE", 24), ("diagnostico", "DIAGNÓSTICO", 16),
                  ("fecha_inicio", "INICIO", 11), ("fecha_fin", "FIN", 11), ("dias_incapacidad", "DÍAS", 5)]

COLUMNAS_EXPORTACION = [
    ("numero_id", "Número de Identificación"), ("nombre_completo", "Nombre Completo"),
    ("fecha_inicio", "Fecha Inicio"), ("fecha_fin", "Fecha Fin"), ("dias_incapacidad", "Días de Incapacidad"),
    ("diagnostico", "Diagnóstico"), ("tipo_incapacidad", "Tipo de Incapacidad"), ("created_at", "Fecha de Registro"),
]


def calcular_dias_incapacidad(fecha_inicio: str, fecha_fin: str) -> int:
    """Días calendario, contando inicio y fin. Si el fin es anterior, 0."""
    inicio = datetime.strptime(fecha_inicio, FORMATO_FECHA)
    fin = datetime.strptime(fecha_fin, FORMATO_FECHA)
    return max(0, (fin - inicio).days + 1)


def preparar_incapacidad(datos: Dict) -> Dict:
    comun.exigir_campos(datos, CAMPOS_REQUERIDOS)
    if not validar_cedula(str(datos["numero_id"])):
        raise ValidationError("El número de identificación debe tener entre 5 y 15 dígitos.")
    for clave in ("fecha_inicio", "fecha_fin"):
        if not validar_fecha(datos[clave]):
            raise ValidationError(f"Fecha no válida en '{clave}'. Use AAAA-MM-DD.")

    incapacidad = {clave: datos[clave] for clave in CAMPOS_REQUERIDOS}
    incapacidad["nombre_completo"] = formatear_nombre(incapacidad["nombre_completo"])
    incapacidad["dias_incapacidad"] = calcular_dias_incapacidad(incapacidad["fecha_inicio"], incapacidad["fecha_fin"])
    return incapacidad


@requiere_permiso(Modulo.INCAPACIDADES, Accion.READ)
def listar_incapacidades(db: DatabaseManager, gestor: GestorSesion, termino: str = "") -> List[Dict]:
    return comun.listar_registros(db, TABLA, termino, CAMPOS_BUSQUEDA)


@requiere_permiso(Modulo.INCAPACIDADES, Accion.CREATE)
def crear_incapacidad(db: DatabaseManager, gestor: GestorSesion, datos: Dict) -> str:
    return comun.crear_registro(db, gestor, TABLA, preparar_incapacidad(datos), "Incapacidad")


@requiere_permiso(Modulo.INCAPACIDADES, Accion.UPDATE)
def actualizar_incapacidad(db: DatabaseManager, gestor: GestorSesion, incapacidad_id: str, datos: Dict) -> bool:
    return comun.actualizar_registro(db, gestor, TABLA, incapacidad_id, preparar_incapacidad(datos), "Incapacidad")


@requiere_permiso(Modulo.INCAPACIDADES, Accion.DELETE)
def eliminar_incapacidad(db: DatabaseManager, gestor: GestorSesion, incapacidad_id: str) -> bool:
    return comun.eliminar_registro(db, gestor, TABLA, incapacidad_id, "Incapacidad")


@requiere_permiso(Modulo.INCAPACIDADES, Accion.READ)
def exportar_incapacidades(db: DatabaseManager, gestor: GestorSesion, directorio: str) -> str:
    return comun.exportar_registros(db, gestor, TABLA, directorio, "Incapacidades", COLUMNAS_EXPORTACION)


def formulario_incapacidad(db: DatabaseManager, gestor: GestorSesion, actual: Optional[Dict] = None) -> Optional[Dict]:
    campos = [
        comun.Campo("numero_id", "Número de Identificación", validar_cedula, "Debe tener entre 5 y 15 dígitos."),
        comun.Campo("nombre_completo", "Nombre Completo", validar_nombre_completo, "Ingrese nombre y apellido (solo letras)."),
        comun.Campo("fecha_inicio", "Fecha Inicio (AAAA-MM-DD)", validar_fecha, "Fecha no válida."),
        comun.Campo("fecha_fin", "Fecha Fin (AAAA-MM-DD)", validar_fecha, "Fecha no válida."),
        comun.Campo("diagnostico", "Diagnóstico", opciones=opciones_activas(db, "diagnosticos")),
        comun.Campo("tipo_incapacidad", "Tipo de Incapacidad", opciones=opciones_activas(db, "tipos_incapacidad")),
    ]
    titulo = "Editar Incapacidad" if actual else "Registrar Nueva Incapacidad"
    return comun.completar_formulario(titulo, campos, gestor, actual)


def menu_incapacidades(db: DatabaseManager, gestor: GestorSesion, ajustes):
    definicion = comun.DefinicionModulo(
        titulo="Gestión de Incapacidades",
        nombre="incapacidad",
        modulo=Modulo.INCAPACIDADES,
        columnas=COLUMNAS_TABLA,
        columnas_detalle=COLUMNAS_EXPORTACION,
        listar=listar_incapacidades,
        crear=crear_incapacidad,
        actualizar=actualizar_incapacidad,
        eliminar=eliminar_incapacidad,
        exportar=exportar_incapacidades,
        formulario=formulario_incapacidad,
        confirmacion="numero_id",
    )
    comun.menu_registros(db, gestor, ajustes, definicion)
