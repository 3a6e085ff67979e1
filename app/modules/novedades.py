# app/modules/novedades.py
from datetime import datetime
from typing import Dict, List, Optional

from ..config import TIPOS_PLANTA
from ..database import DatabaseManager
from ..errors import ValidationError
from ..guardia import requiere_permiso
from ..permisos import Accion, Modulo
from ..sesion import GestorSesion
from ..validators import (FORMATO_FECHA, FORMATO_HORA, formatear_nombre, formatear_observacion,
                          validar_cedula, validar_fecha, validar_hora, validar_nombre_completo)
from . import comun
from .configuracion import opciones_activas

TABLA = "novedades"
CAMPOS_BUSQUEDA = ("cedula", "nombre", "tipo_novedad")
CAMPOS_REQUERIDOS = ("cedula", "nombre", "tipo_planta", "fecha_inicio", "hora_inicio",
                     "fecha_fin", "hora_fin", "tipo_novedad")

COLUMNAS_TABLA = [("cedula", "CÉDULA", 12), ("nombre", "NOMBRE", 24), ("tipo_novedad", "TIPO", 14),
                  ("fecha_inicio", "INICIO", 11), ("fecha_fin", "FIN", 11), ("horas_ausencia", "HORAS", 7)]

COLUMNAS_EXPORTACION = [
    ("cedula", "Cédula"), ("nombre", "Nombre"), ("tipo_planta", "Tipo de Planta"),
    ("fecha_inicio", "Fecha Inicio"), ("hora_inicio", "Hora Inicio"), ("fecha_fin", "Fecha Fin"),
    ("hora_fin", "Hora Fin"), ("horas_ausencia", "Horas de Ausencia"), ("tipo_novedad", "Tipo de Novedad"),
    ("observacion", "Observación"), ("created_at", "Fecha de Registro"),
]


def calcular_horas_ausencia(fecha_inicio: str, hora_inicio: str, fecha_fin: str, hora_fin: str) -> float:
    """Horas entre inicio y fin; nunca negativo."""
    formato = f"{FORMATO_FECHA} {FORMATO_HORA}"
    inicio = datetime.strptime(f"{fecha_inicio} {hora_inicio}", formato)
    fin = datetime.strptime(f"{fecha_fin} {hora_fin}", formato)
    return max(0.0, round((fin - inicio).total_seconds() / 3600, 2))


def preparar_novedad(datos: Dict) -> Dict:
    """Valida los datos del formulario y calcula las horas de ausencia."""
    comun.exigir_campos(datos, CAMPOS_REQUERIDOS)
    if not validar_cedula(str(datos["cedula"])):
        raise ValidationError("La cédula debe tener entre 5 y 15 dígitos.")
    if datos["tipo_planta"] not in TIPOS_PLANTA:
        raise ValidationError(f"Tipo de planta no válido: {datos['tipo_planta']}")
    for clave in ("fecha_inicio", "fecha_fin"):
        if not validar_fecha(datos[clave]):
            raise ValidationError(f"Fecha no válida en '{clave}'. Use AAAA-MM-DD.")
    for clave in ("hora_inicio", "hora_fin"):
        if not validar_hora(datos[clave]):
            raise ValidationError(f"Hora no válida en '{clave}'. Use HH:MM.")

    novedad = {clave: datos[clave] for clave in CAMPOS_REQUERIDOS}
    novedad["nombre"] = formatear_nombre(novedad["nombre"])
    novedad["observacion"] = formatear_observacion(datos.get("observacion"))
    novedad["horas_ausencia"] = calcular_horas_ausencia(
        novedad["fecha_inicio"], novedad["hora_inicio"], novedad["fecha_fin"], novedad["hora_fin"])
    return novedad


@requiere_permiso(Modulo.NOVEDADES, Accion.READ)
def listar_novedades(db: DatabaseManager, gestor: GestorSesion, termino: str = "") -> List[Dict]:
    return comun.listar_registros(db, TABLA, termino, CAMPOS_BUSQUEDA)


@requiere_permiso(Modulo.NOVEDADES, Accion.CREATE)
def crear_novedad(db: DatabaseManager, gestor: GestorSesion, datos: Dict) -> str:
    return comun.crear_registro(db, gestor, TABLA, preparar_novedad(datos), "Novedad")


@requiere_permiso(Modulo.NOVEDADES, Accion.UPDATE)
def actualizar_novedad(db: DatabaseManager, gestor: GestorSesion, novedad_id: str, datos: Dict) -> bool:
    return comun.actualizar_registro(db, gestor, TABLA, novedad_id, preparar_novedad(datos), "Novedad")


@requiere_permiso(Modulo.NOVEDADES, Accion.DELETE)
def eliminar_novedad(db: DatabaseManager, gestor: GestorSesion, novedad_id: str) -> bool:
    return comun.eliminar_registro(db, gestor, TABLA, novedad_id, "Novedad")


@requiere_permiso(Modulo.NOVEDADES, Accion.READ)
def exportar_novedades(db: DatabaseManager, gestor: GestorSesion, directorio: str) -> str:
    return comun.exportar_registros(db, gestor, TABLA, directorio, "Novedades", COLUMNAS_EXPORTACION)


def formulario_novedad(db: DatabaseManager, gestor: GestorSesion, actual: Optional[Dict] = None) -> Optional[Dict]:
    campos = [
        comun.Campo("cedula", "Cédula", validar_cedula, "La cédula debe tener entre 5 y 15 dígitos."),
        comun.Campo("nombre", "Nombre Completo", validar_nombre_completo, "Ingrese nombre y apellido (solo letras)."),
        comun.Campo("tipo_planta", "Tipo de Planta", opciones=TIPOS_PLANTA),
        comun.Campo("fecha_inicio", "Fecha Inicio (AAAA-MM-DD)", validar_fecha, "Fecha no válida."),
        comun.Campo("hora_inicio", "Hora Inicio (HH:MM)", validar_hora, "Hora no válida."),
        comun.Campo("fecha_fin", "Fecha Fin (AAAA-MM-DD)", validar_fecha, "Fecha no válida."),
        comun.Campo("hora_fin", "Hora Fin (HH:MM)", validar_hora, "Hora no válida."),
        comun.Campo("tipo_novedad", "Tipo de Novedad", opciones=opciones_activas(db, "tipos_novedad")),
        comun.Campo("observacion", "Observación (opcional)", opcional=True),
    ]
    titulo = "Editar Novedad" if actual else "Registrar Nueva Novedad"
    return comun.completar_formulario(titulo, campos, gestor, actual)


def menu_novedades(db: DatabaseManager, gestor: GestorSesion, ajustes):
    definicion = comun.DefinicionModulo(
        titulo="Gestión de Novedades",
        nombre="novedad",
        modulo=Modulo.NOVEDADES,
        columnas=COLUMNAS_TABLA,
        columnas_detalle=COLUMNAS_EXPORTACION,
        listar=listar_novedades,
        crear=crear_novedad,
        actualizar=actualizar_novedad,
        eliminar=eliminar_novedad,
        exportar=exportar_novedades,
        formulario=formulario_novedad,
        confirmacion="cedula",
    )
    comun.menu_registros(db, gestor, ajustes, definicion)
