"""Fixtures compartidas: base de datos en memoria, sesión en tmp_path y usuarios de prueba."""
import pytest

from app.auth import ServicioAutenticacion, hash_contrasena
from app.config import Ajustes, ROL_ADMIN, ROL_USUARIO
from app.database import DatabaseManager
from app.sesion import AlmacenSesion, GestorSesion

EMAIL_ADMIN = "admin@example.org"
CLAVE_ADMIN = "Admin12345"
EMAIL_USUARIO = "usuario@example.org"
CLAVE_USUARIO = "Usuario12345"


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    yield manager
    manager.close()


@pytest.fixture
def usuarios(db):
    admin_id = db.insert("users", [{"email": EMAIL_ADMIN, "password_hash": hash_contrasena(CLAVE_ADMIN), "role": ROL_ADMIN}])[0]
    usuario_id = db.insert("users", [{"email": EMAIL_USUARIO, "password_hash": hash_contrasena(CLAVE_USUARIO), "role": ROL_USUARIO}])[0]
    return {"admin": admin_id, "usuario": usuario_id}


@pytest.fixture
def almacen(tmp_path):
    return AlmacenSesion(str(tmp_path / "sesion.json"))


@pytest.fixture
def gestor(db, almacen):
    return GestorSesion(ServicioAutenticacion(db), db.get_permisos_usuario, almacen)


@pytest.fixture
def gestor_admin(gestor, usuarios):
    gestor.iniciar_sesion(EMAIL_ADMIN, CLAVE_ADMIN)
    return gestor


@pytest.fixture
def gestor_usuario(gestor, usuarios):
    gestor.iniciar_sesion(EMAIL_USUARIO, CLAVE_USUARIO)
    return gestor


@pytest.fixture
def otorgar(db, gestor):
    """Asigna permisos a un usuario y recarga la sesión abierta."""
    def _otorgar(user_id, *filas):
        db.replace_permisos_usuario(user_id, list(filas))
        gestor.recargar_permisos()
    return _otorgar


@pytest.fixture
def ajustes(tmp_path):
    return Ajustes(db_path=str(tmp_path), db_name=":memory:", session_file=str(tmp_path / "sesion.json"),
                   export_path=str(tmp_path / "exportaciones"), log_file=str(tmp_path / "novedades.log"))


def permiso(module, c=False, r=False, u=False, d=False):
    return {"module": module, "can_create": c, "can_read": r, "can_update": u, "can_delete": d}
