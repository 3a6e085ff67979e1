# app/modules/enfermeria.py
from typing import Dict, List, Optional

from ..database import DatabaseManager
from ..errors import ValidationError
from ..guardia import requiere_permiso
from ..permisos import Accion, Modulo
from ..sesion import GestorSesion
from ..validators import formatear_nombre, formatear_observacion, validar_cedula, validar_nombre_completo
from . import comun
from .configuracion import opciones_activas

TABLA = "enfermeria"
CAMPOS_BUSQUEDA = ("nombre", "cargo", "dependencia", "sintomas")
CAMPOS_REQUERIDOS = ("cedula", "nombre", "cargo", "dependencia", "sintomas", "antecedentes_salud")

COLUMNAS_TABLA = [("cedula", "CÉDULA", 12), ("nombre", "NOMBRE", 24), ("dependencia", "DEPENDENCIA", 16),
                  ("sintomas", "SÍNTOMAS", 16), ("created_at", "FECHA", 19)]

COLUMNAS_EXPORTACION = [
    ("cedula", "Cédula"), ("nombre", "Nombre"), ("cargo", "Cargo"), ("dependencia", "Dependencia"),
    ("sintomas", "Síntomas"), ("antecedentes_salud", "Antecedentes de Salud"),
    ("observaciones", "Observaciones"), ("created_at", "Fecha de Atención"),
]


def preparar_atencion(datos: Dict) -> Dict:
    comun.exigir_campos(datos, CAMPOS_REQUERIDOS)
    if not validar_cedula(str(datos["cedula"])):
        raise ValidationError("La cédula debe tener entre 5 y 15 dígitos.")
    atencion = {clave: datos[clave] for clave in CAMPOS_REQUERIDOS}
    atencion["nombre"] = formatear_nombre(atencion["nombre"])
    atencion["observaciones"] = formatear_observacion(datos.get("observaciones"))
    return atencion


@requiere_permiso(Modulo.ENFERMERIA, Accion.READ)
def listar_atenciones(db: DatabaseManager, gestor: GestorSesion, termino: str = "") -> List[Dict]:
    return comun.listar_registros(db, TABLA, termino, CAMPOS_BUSQUEDA)


@requiere_permiso(Modulo.ENFERMERIA, Accion.CREATE)
def crear_atencion(db: DatabaseManager, gestor: GestorSesion, datos: Dict) -> str:
    return comun.crear_registro(db, gestor, TABLA, preparar_atencion(datos), "Atención de Enfermería")


@requiere_permiso(Modulo.ENFERMERIA, Accion.UPDATE)
def actualizar_atencion(db: DatabaseManager, gestor: GestorSesion, atencion_id: str, datos: Dict) -> bool:
    return comun.actualizar_registro(db, gestor, TABLA, atencion_id, preparar_atencion(datos), "Atención de Enfermería")


@requiere_permiso(Modulo.ENFERMERIA, Accion.DELETE)
def eliminar_atencion(db: DatabaseManager, gestor: GestorSesion, atencion_id: str) -> bool:
    return comun.eliminar_registro(db, gestor, TABLA, atencion_id, "Atención de Enfermería")


@requiere_permiso(Modulo.ENFERMERIA, Accion.READ)
def exportar_atenciones(db: DatabaseManager, gestor: GestorSesion, directorio: str) -> str:
    return comun.exportar_registros(db, gestor, TABLA, directorio, "Enfermería", COLUMNAS_EXPORTACION)


def formulario_atencion(db: DatabaseManager, gestor: GestorSesion, actual: Optional[Dict] = None) -> Optional[Dict]:
    campos = [
        comun.Campo("cedula", "Cédula", validar_cedula, "La cédula debe tener entre 5 y 15 dígitos."),
        comun.Campo("nombre", "Nombre Completo", validar_nombre_completo, "Ingrese nombre y apellido (solo letras)."),
        comun.Campo("cargo", "Cargo", opciones=opciones_activas(db, "cargos")),
        comun.Campo("dependencia", "Dependencia", opciones=opciones_activas(db, "dependencias")),
        comun.Campo("sintomas", "Síntomas", opciones=opciones_activas(db, "sintomas")),
        comun.Campo("antecedentes_salud", "Antecedentes de Salud", opciones=opciones_activas(db, "antecedentes_salud")),
        comun.Campo("observaciones", "Observaciones (opcional)", opcional=True),
    ]
    titulo = "Editar Atención" if actual else "Registrar Atención de Enfermería"
    return comun.completar_formulario(titulo, campos, gestor, actual)


def menu_enfermeria(db: DatabaseManager, gestor: GestorSesion, ajustes):
    definicion = comun.DefinicionModulo(
        titulo="Enfermería",
        nombre="atención",
        modulo=Modulo.ENFERMERIA,
        columnas=COLUMNAS_TABLA,
        columnas_detalle=COLUMNAS_EXPORTACION,
        listar=listar_atenciones,
        crear=crear_atencion,
        actualizar=actualizar_atencion,
        eliminar=eliminar_atencion,
        exportar=exportar_atenciones,
        formulario=formulario_atencion,
        confirmacion="cedula",
    )
    comun.menu_registros(db, gestor, ajustes, definicion)
