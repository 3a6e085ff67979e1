# app/validators.py
import re
from datetime import datetime
from typing import Optional

FORMATO_FECHA = "%Y-%m-%d"
FORMATO_HORA = "%H:%M"


def validar_campo_general(valor: str) -> bool:
    """Permite letras (con tildes), números y los caracteres especiales comunes (- _ . ,)."""
    return bool(re.match(r"^[a-zA-Z0-9áéíóúÁÉÍÓÚñÑüÜ\-_.,\s]+$", valor))


def validar_cedula(cedula: str) -> bool:
    """Solo dígitos, entre 5 y 15."""
    return bool(re.match(r"^\d{5,15}$", cedula))


def validar_nombre_completo(nombre: str) -> bool:
    patron = r'^[a-zA-ZáéíóúÁÉÍÓÚñÑüÜ\s]+$'
    if not re.match(patron, nombre): return False
    return len(nombre.strip().split()) >= 2


def validar_fecha(fecha: str) -> bool:
    """Formato AAAA-MM-DD."""
    try:
        datetime.strptime(fecha, FORMATO_FECHA)
        return True
    except ValueError:
        return False


def validar_hora(hora: str) -> bool:
    """Formato HH:MM de 24 horas."""
    try:
        datetime.strptime(hora, FORMATO_HORA)
        return True
    except ValueError:
        return False


def formatear_nombre(nombre: str) -> str:
    return ' '.join(word.capitalize() for word in nombre.split())


def formatear_observacion(texto: Optional[str]) -> Optional[str]:
    """
    Formatea el texto de las observaciones.
    - Si está vacío, devuelve None.
    - Si no, pone la primera letra en mayúscula y respeta el resto.
    """
    if not texto or not texto.strip():
        return None
    texto = texto.strip()
    return texto[0].upper() + texto[1:]
