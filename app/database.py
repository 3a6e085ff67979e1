# app/database.py
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .errors import BackendUnavailable, ValidationError

logger = logging.getLogger("novedades.db")

COLUMNAS_CATALOGO = ("id", "nombre", "activo", "created_at")

# Esquema permitido: solo estas tablas y columnas pueden usarse en filtros,
# ordenamientos y datos de escritura.
TABLAS = {
    "users": ("id", "email", "password_hash", "role", "created_at", "updated_at"),
    "user_permissions": ("id", "user_id", "module", "can_create", "can_read", "can_update", "can_delete"),
    "novedades": ("id", "cedula", "nombre", "tipo_planta", "fecha_inicio", "hora_inicio", "fecha_fin",
                  "hora_fin", "horas_ausencia", "tipo_novedad", "observacion", "created_at", "created_by"),
    "incapacidades": ("id", "numero_id", "nombre_completo", "fecha_inicio", "fecha_fin", "dias_incapacidad",
                      "diagnostico", "tipo_incapacidad", "created_at", "created_by"),
    "enfermeria": ("id", "cedula", "nombre", "cargo", "dependencia", "sintomas", "antecedentes_salud",
                   "observaciones", "created_at", "created_by"),
    "tipos_novedad": COLUMNAS_CATALOGO,
    "diagnosticos": COLUMNAS_CATALOGO,
    "tipos_incapacidad": COLUMNAS_CATALOGO,
    "cargos": COLUMNAS_CATALOGO,
    "dependencias": COLUMNAS_CATALOGO,
    "sintomas": COLUMNAS_CATALOGO,
    "antecedentes_salud": COLUMNAS_CATALOGO,
}

COLUMNAS_BOOLEANAS = {"can_create", "can_read", "can_update", "can_delete", "activo"}


def ahora() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def nuevo_id() -> str:
    return str(uuid.uuid4())


class DatabaseManager:
    """
    Gestiona todas las operaciones de la base de datos SQLite de forma centralizada.
    """
    def __init__(self, db_name: str):
        self.db_name = db_name
        self.conn = None
        self.connect()
        self.create_tables()

    def connect(self):
        """Conecta a la base de datos y configura el modo de fila."""
        try:
            self.conn = sqlite3.connect(self.db_name)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            logger.exception("Error al conectar a la base de datos %s", self.db_name)
            raise BackendUnavailable(f"Error al conectar a la base de datos: {e}")

    def close(self):
        """Cierra la conexión a la base de datos."""
        if self.conn: self.conn.close()

    def execute_query(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Ejecuta una consulta SQL traduciendo los errores de sqlite."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(query, params)
            return cursor
        except sqlite3.IntegrityError as e:
            logger.info("Violación de integridad: %s", e)
            raise ValidationError("El registro ya existe o hace referencia a datos inexistentes.")
        except sqlite3.Error as e:
            logger.exception("Error de base de datos")
            raise BackendUnavailable(f"Error en la base de datos: {e}")

    def commit(self):
        """Confirma los cambios en la base de datos."""
        try:
            self.conn.commit()
        except sqlite3.Error as e:
            raise BackendUnavailable(f"Error al confirmar cambios: {e}")

    def rollback(self):
        try:
            self.conn.rollback()
        except sqlite3.Error:
            logger.exception("Error al revertir la transacción")

    def create_tables(self):
        """Crea las tablas de la base de datos si no existen."""
        cursor = self.conn.cursor()

        # --- Tablas de Acceso y Logs ---
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY, email TEXT UNIQUE NOT NULL, password_hash TEXT NOT NULL,
                role TEXT NOT NULL, created_at TEXT NOT NULL, updated_at TEXT NOT NULL
            )''')
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS user_permissions (
                id TEXT PRIMARY KEY, user_id TEXT NOT NULL, module TEXT NOT NULL,
                can_create INTEGER NOT NULL DEFAULT 0, can_read INTEGER NOT NULL DEFAULT 0,
                can_update INTEGER NOT NULL DEFAULT 0, can_delete INTEGER NOT NULL DEFAULT 0,
                UNIQUE(user_id, module),
                FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
            )''')
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS login_logs (
                id INTEGER PRIMARY KEY, user_id TEXT, timestamp TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
            )''')
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS log_sistema (
                id INTEGER PRIMARY KEY AUTOINCREMENT, accion TEXT NOT NULL,
                detalles TEXT NOT NULL, usuario TEXT NOT NULL, fecha TEXT NOT NULL
            )''')

        # --- Registros del personal ---
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS novedades (
                id TEXT PRIMARY KEY, cedula TEXT NOT NULL, nombre TEXT NOT NULL, tipo_planta TEXT NOT NULL,
                fecha_inicio TEXT NOT NULL, hora_inicio TEXT NOT NULL, fecha_fin TEXT NOT NULL,
                hora_fin TEXT NOT NULL, horas_ausencia REAL NOT NULL DEFAULT 0, tipo_novedad TEXT NOT NULL,
                observacion TEXT, created_at TEXT NOT NULL, created_by TEXT NOT NULL
            )''')
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS incapacidades (
                id TEXT PRIMARY KEY, numero_id TEXT NOT NULL, nombre_completo TEXT NOT NULL,
                fecha_inicio TEXT NOT NULL, fecha_fin TEXT NOT NULL, dias_incapacidad INTEGER NOT NULL DEFAULT 0,
                diagnostico TEXT NOT NULL, tipo_incapacidad TEXT NOT NULL,
                created_at TEXT NOT NULL, created_by TEXT NOT NULL
            )''')
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS enfermeria (
                id TEXT PRIMARY KEY, cedula TEXT NOT NULL, nombre TEXT NOT NULL, cargo TEXT NOT NULL,
                dependencia TEXT NOT NULL, sintomas TEXT NOT NULL, antecedentes_salud TEXT NOT NULL,
                observaciones TEXT, created_at TEXT NOT NULL, created_by TEXT NOT NULL
            )''')

        # --- Catálogos ---
        from .config import CATALOGOS
        for tabla in CATALOGOS:
            cursor.execute(f'''
                CREATE TABLE IF NOT EXISTS {tabla} (
                    id TEXT PRIMARY KEY, nombre TEXT UNIQUE NOT NULL,
                    activo INTEGER NOT NULL DEFAULT 1, created_at TEXT NOT NULL
                )''')

        self.commit()
        self.inicializar_catalogos()

    def inicializar_catalogos(self):
        from .config import CATALOGOS_INICIALES
        for tabla, valores in CATALOGOS_INICIALES.items():
            if self.count(tabla) > 0:
                continue
            self.insert(tabla, [{"nombre": valor, "activo": True} for valor in valores])

    def inicializar_admin_si_no_existe(self, email: str, contrasena: Optional[str] = None,
                                       rondas: int = 10) -> Tuple[bool, Optional[str]]:
        """Crea el administrador inicial si la tabla de usuarios está vacía."""
        from .auth import hash_contrasena, generar_contrasena_temporal, validar_contrasena
        from .config import ROL_ADMIN
        if self.count("users") == 0:
            email = email.strip().lower()
            if contrasena and not validar_contrasena(contrasena):
                raise ValidationError("ADMIN_PASSWORD debe tener entre 8 caracteres y 72 bytes, con letras y números.")
            admin_pass = contrasena or generar_contrasena_temporal()
            self.insert("users", [{"email": email, "password_hash": hash_contrasena(admin_pass, rondas), "role": ROL_ADMIN}])
            logger.info("Usuario administrador inicial creado: %s", email)
            return True, (None if contrasena else admin_pass)
        return False, None

    # --- Operaciones genéricas sobre tablas ---
    def _validar(self, tabla: str, columnas=()) -> Tuple[str, ...]:
        if tabla not in TABLAS:
            raise ValueError(f"Tabla desconocida: {tabla}")
        desconocidas = [c for c in columnas if c not in TABLAS[tabla]]
        if desconocidas:
            raise ValueError(f"Columnas desconocidas en {tabla}: {', '.join(desconocidas)}")
        return TABLAS[tabla]

    @staticmethod
    def _fila(row: sqlite3.Row) -> Dict:
        fila = dict(row)
        for columna in COLUMNAS_BOOLEANAS.intersection(fila):
            fila[columna] = bool(fila[columna])
        return fila

    @staticmethod
    def _valor(valor):
        return int(valor) if isinstance(valor, bool) else valor

    def _where(self, filtros: Optional[Dict]) -> Tuple[str, list]:
        if not filtros:
            return "", []
        condiciones = " AND ".join(f"{columna} = ?" for columna in filtros)
        return f" WHERE {condiciones}", [self._valor(v) for v in filtros.values()]

    def select(self, tabla: str, filtros: Optional[Dict] = None, orden: Optional[str] = None,
               descendente: bool = False, columnas: Optional[List[str]] = None) -> List[Dict]:
        """SELECT con filtros de igualdad y orden opcional por una columna."""
        self._validar(tabla, list(filtros or {}) + ([orden] if orden else []) + list(columnas or []))
        where, params = self._where(filtros)
        query = f"SELECT {', '.join(columnas) if columnas else '*'} FROM {tabla}{where}"
        if orden:
            query += f" ORDER BY {orden} {'DESC' if descendente else 'ASC'}"
        return [self._fila(row) for row in self.execute_query(query, tuple(params)).fetchall()]

    def count(self, tabla: str, filtros: Optional[Dict] = None) -> int:
        self._validar(tabla, list(filtros or {}))
        where, params = self._where(filtros)
        return self.execute_query(f"SELECT COUNT(*) FROM {tabla}{where}", tuple(params)).fetchone()[0]

    def insert(self, tabla: str, filas: List[Dict]) -> List[str]:
        """Inserta una o varias filas en una sola transacción. Devuelve los ids."""
        columnas_tabla = self._validar(tabla)
        ids = []
        try:
            for fila in filas:
                datos = dict(fila)
                datos.setdefault("id", nuevo_id())
                if "created_at" in columnas_tabla: datos.setdefault("created_at", ahora())
                if "updated_at" in columnas_tabla: datos.setdefault("updated_at", datos.get("created_at", ahora()))
                self._validar(tabla, datos)
                marcadores = ", ".join("?" for _ in datos)
                self.execute_query(f"INSERT INTO {tabla} ({', '.join(datos)}) VALUES ({marcadores})",
                                   tuple(self._valor(v) for v in datos.values()))
                ids.append(datos["id"])
            self.commit()
        except Exception:
            self.rollback()
            raise
        return ids

    def update(self, tabla: str, registro_id: str, datos: Dict) -> bool:
        columnas_tabla = self._validar(tabla, datos)
        datos = {k: v for k, v in datos.items() if k != "id"}
        if "updated_at" in columnas_tabla: datos["updated_at"] = ahora()
        if not datos:
            return False
        asignaciones = ", ".join(f"{columna} = ?" for columna in datos)
        params = tuple(self._valor(v) for v in datos.values()) + (registro_id,)
        try:
            cursor = self.execute_query(f"UPDATE {tabla} SET {asignaciones} WHERE id = ?", params)
            self.commit()
        except Exception:
            self.rollback()
            raise
        return cursor.rowcount > 0

    def delete(self, tabla: str, registro_id: str) -> bool:
        return self.delete_where(tabla, {"id": registro_id}) > 0

    def delete_where(self, tabla: str, filtros: Dict) -> int:
        if not filtros:
            raise ValueError("delete_where requiere al menos un filtro")
        self._validar(tabla, filtros)
        where, params = self._where(filtros)
        try:
            cursor = self.execute_query(f"DELETE FROM {tabla}{where}", tuple(params))
            self.commit()
        except Exception:
            self.rollback()
            raise
        return cursor.rowcount

    # --- Métodos de Gestión de Usuarios y Permisos ---
    def get_user_by_email(self, email: str) -> Optional[Dict]:
        filas = self.select("users", {"email": email})
        return filas[0] if filas else None

    def get_user_by_id(self, user_id: str) -> Optional[Dict]:
        filas = self.select("users", {"id": user_id}, columnas=["id", "email", "role", "created_at", "updated_at"])
        return filas[0] if filas else None

    def get_all_users(self) -> List[Dict]:
        """Usuarios sin el hash de contraseña, más recientes primero."""
        return self.select("users", orden="created_at", descendente=True,
                           columnas=["id", "email", "role", "created_at", "updated_at"])

    def check_if_email_exists(self, email: str, excluir_id: Optional[str] = None) -> bool:
        usuario = self.get_user_by_email(email)
        return usuario is not None and usuario["id"] != excluir_id

    def get_permisos_usuario(self, user_id: str) -> List[Dict]:
        return self.select("user_permissions", {"user_id": user_id}, orden="module")

    def replace_permisos_usuario(self, user_id: str, filas: List[Dict]):
        """Borra todos los permisos del usuario e inserta el conjunto nuevo."""
        try:
            self.execute_query("DELETE FROM user_permissions WHERE user_id = ?", (user_id,))
            for fila in filas:
                datos = {"id": nuevo_id(), "user_id": user_id}
                datos.update({k: v for k, v in fila.items() if k not in ("id", "user_id")})
                self._validar("user_permissions", datos)
                self.execute_query(
                    f"INSERT INTO user_permissions ({', '.join(datos)}) VALUES ({', '.join('?' for _ in datos)})",
                    tuple(self._valor(v) for v in datos.values()))
            self.commit()
        except Exception:
            self.rollback()
            raise

    # --- Métodos de Logs ---
    def log_login_attempt(self, user_id: str):
        self.execute_query("INSERT INTO login_logs (user_id, timestamp) VALUES (?, ?)", (user_id, ahora()))
        self.commit()

    def get_last_login_for_user(self, user_id: str) -> Optional[str]:
        row = self.execute_query("SELECT timestamp FROM login_logs WHERE user_id = ? ORDER BY timestamp DESC LIMIT 1", (user_id,)).fetchone()
        return row['timestamp'] if row else None

    def registrar_movimiento_sistema(self, accion: str, detalles: str, usuario: str):
        self.execute_query("INSERT INTO log_sistema (accion, detalles, usuario, fecha) VALUES (?, ?, ?, ?)", (accion, detalles, usuario, ahora()))
        self.commit()

    def get_log_sistema_paginated(self, page: int, page_size: int) -> Tuple[List[Dict], int]:
        offset = (page - 1) * page_size
        total_rows = self.execute_query("SELECT COUNT(id) FROM log_sistema").fetchone()[0]
        total_pages = (total_rows + page_size - 1) // page_size if total_rows > 0 else 1
        logs = self.execute_query("SELECT * FROM log_sistema ORDER BY id DESC LIMIT ? OFFSET ?", (page_size, offset)).fetchall()
        return [dict(row) for row in logs], total_pages
