# app/config.py
import logging
import os
from typing import Optional

from dotenv import load_dotenv

# --- Roles ---
ROL_ADMIN = "Admin"
ROL_USUARIO = "Usuario"
ROLES = [ROL_ADMIN, ROL_USUARIO]

# --- Módulos con permisos editables por usuario ---
MODULOS_EDITABLES = ["novedades", "incapacidades", "enfermeria"]

NOMBRES_MODULOS = {
    "dashboard": "Dashboard",
    "novedades": "Novedades",
    "incapacidades": "Incapacidades",
    "enfermeria": "Enfermería",
    "usuarios": "Usuarios",
    "configuracion": "Configuración",
}

# --- Catálogos (tabla -> nombre visible) ---
CATALOGOS = {
    "tipos_novedad": "Tipos de Novedad",
    "diagnosticos": "Diagnósticos",
    "tipos_incapacidad": "Tipos de Incapacidad",
    "cargos": "Cargos",
    "dependencias": "Dependencias",
    "sintomas": "Síntomas",
    "antecedentes_salud": "Antecedentes de Salud",
}

CATALOGOS_INICIALES = {
    "tipos_novedad": ["Permiso", "Calamidad", "Licencia", "Ausencia", "Otro"],
    "tipos_incapacidad": ["Enfermedad General", "Accidente de Trabajo", "Licencia de Maternidad", "Licencia de Paternidad"],
    "diagnosticos": ["Gripe", "Migraña", "Gastroenteritis"],
    "cargos": ["Docente", "Auxiliar Administrativo", "Coordinador"],
    "dependencias": ["Rectoría", "Talento Humano", "Bienestar"],
    "sintomas": ["Fiebre", "Dolor de Cabeza", "Mareo"],
    "antecedentes_salud": ["Ninguno", "Hipertensión", "Diabetes"],
}

TIPOS_PLANTA = ["Docente", "Administrativo", "Aprendiz"]

BCRYPT_ROUNDS_MINIMO = 10

# --- Claves del almacenamiento de sesión ---
CLAVE_MARCA_SESION = "novedades_token"
CLAVE_USUARIO_SESION = "novedades_user"
VALOR_MARCA_SESION = "authenticated"


class Ajustes:
    """Valores de configuración leídos del entorno (.env)."""
    def __init__(self, environment: str = "production", db_path: str = "app/data",
                 db_name: str = "novedades.db", session_file: str = "app/data/sesion.json",
                 export_path: str = "exportaciones", bcrypt_rounds: int = BCRYPT_ROUNDS_MINIMO,
                 admin_email: str = "admin@example.org", admin_password: Optional[str] = None,
                 log_file: str = "app/data/novedades.log", log_level: str = "INFO",
                 login_detailed_errors: bool = False):
        self.environment = environment
        self.db_path = db_path
        self.db_name = db_name
        self.session_file = session_file
        self.export_path = export_path
        self.bcrypt_rounds = max(bcrypt_rounds, BCRYPT_ROUNDS_MINIMO)
        self.admin_email = admin_email
        self.admin_password = admin_password
        self.log_file = log_file
        self.log_level = log_level
        self.login_detailed_errors = login_detailed_errors

    @property
    def db_full_path(self) -> str:
        if self.db_name == ":memory:":
            return self.db_name
        return os.path.join(self.db_path, self.db_name)


def _env_bool(nombre: str, defecto: bool = False) -> bool:
    valor = os.getenv(nombre)
    if valor is None:
        return defecto
    return valor.strip().lower() in ("1", "true", "yes", "si", "sí", "on")


def _env_int(nombre: str, defecto: int) -> int:
    try:
        return int(os.getenv(nombre, defecto))
    except ValueError:
        return defecto


def cargar_ajustes() -> Ajustes:
    load_dotenv()
    db_path = os.getenv("DB_PATH", "app/data")
    return Ajustes(
        environment=os.getenv("ENVIRONMENT", "production"),
        db_path=db_path,
        db_name=os.getenv("DB_NAME", "novedades.db"),
        session_file=os.getenv("SESSION_FILE", os.path.join(db_path, "sesion.json")),
        export_path=os.getenv("EXPORT_PATH", "exportaciones"),
        bcrypt_rounds=_env_int("BCRYPT_ROUNDS", BCRYPT_ROUNDS_MINIMO),
        admin_email=os.getenv("ADMIN_EMAIL", "admin@example.org").strip().lower(),
        admin_password=os.getenv("ADMIN_PASSWORD") or None,
        log_file=os.getenv("LOG_FILE", os.path.join(db_path, "novedades.log")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        login_detailed_errors=_env_bool("LOGIN_DETAILED_ERRORS"),
    )


def configurar_logging(ajustes: Ajustes):
    """Envía el log de diagnóstico a un archivo para no ensuciar la consola."""
    directorio = os.path.dirname(ajustes.log_file)
    if directorio and not os.path.exists(directorio):
        os.makedirs(directorio)
    logging.basicConfig(
        filename=ajustes.log_file,
        level=getattr(logging, ajustes.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
