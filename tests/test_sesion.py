"""
Tests del gestor de sesión (app/sesion.py).

  - Inicio y cierre de sesión
  - Persistencia y restauración desde el archivo de sesión
  - Fallo al cargar permisos: la sesión sigue abierta sin permisos
"""
import json

import pytest

from app.config import CLAVE_MARCA_SESION, CLAVE_USUARIO_SESION, VALOR_MARCA_SESION
from app.errors import BackendUnavailable, InvalidCredential, LoginInProgress
from app.permisos import Accion, Modulo
from app.sesion import AlmacenSesion, EstadoSesion, GestorSesion, Identidad
from conftest import CLAVE_ADMIN, CLAVE_USUARIO, EMAIL_ADMIN, EMAIL_USUARIO, permiso


class AutenticadorFijo:
    def __init__(self, identidad):
        self.identidad = identidad

    def autenticar(self, email, contrasena):
        return self.identidad


def fallar_permisos(user_id):
    raise BackendUnavailable("sin conexión")


class TestInicioSesion:

    def test_login_guarda_identidad_sin_secretos(self, gestor, usuarios, almacen):
        identidad = gestor.iniciar_sesion(EMAIL_USUARIO, CLAVE_USUARIO)
        assert gestor.autenticado
        assert gestor.estado is EstadoSesion.AUTENTICADO
        assert identidad.id == usuarios["usuario"]
        assert almacen.get(CLAVE_MARCA_SESION) == VALOR_MARCA_SESION
        assert json.loads(almacen.get(CLAVE_USUARIO_SESION)) == identidad.to_dict()
        with open(almacen.ruta, encoding="utf-8") as f:
            contenido = f.read()
        assert "$2b$" not in contenido
        assert CLAVE_USUARIO not in contenido

    def test_login_fallido_no_abre_sesion(self, gestor, usuarios, almacen):
        with pytest.raises(InvalidCredential):
            gestor.iniciar_sesion(EMAIL_ADMIN, "Equivocada1")
        assert gestor.sesion is None
        assert gestor.estado is EstadoSesion.ANONIMO
        assert almacen.get(CLAVE_MARCA_SESION) is None

    def test_login_en_curso_se_rechaza(self, gestor, usuarios):
        gestor.estado = EstadoSesion.AUTENTICANDO
        with pytest.raises(LoginInProgress):
            gestor.iniciar_sesion(EMAIL_ADMIN, CLAVE_ADMIN)

    def test_login_carga_permisos(self, db, gestor, usuarios):
        db.replace_permisos_usuario(usuarios["usuario"], [permiso("novedades", r=True)])
        gestor.iniciar_sesion(EMAIL_USUARIO, CLAVE_USUARIO)
        assert gestor.tiene_permiso(Modulo.NOVEDADES, Accion.READ)
        assert not gestor.tiene_permiso(Modulo.NOVEDADES, Accion.CREATE)

    def test_fallo_de_permisos_mantiene_sesion(self, db, almacen, usuarios, capsys):
        gestor = GestorSesion(AutenticadorFijo(Identidad(usuarios["usuario"], EMAIL_USUARIO, "Usuario")),
                              fallar_permisos, almacen)
        gestor.iniciar_sesion(EMAIL_USUARIO, "no-importa")
        assert gestor.autenticado
        assert gestor.rol == "Usuario"
        assert gestor.permisos == []
        assert gestor.tiene_permiso(Modulo.DASHBOARD, Accion.READ)
        assert not gestor.tiene_permiso(Modulo.NOVEDADES, Accion.READ)
        assert "No se pudieron cargar sus permisos" in capsys.readouterr().out

    def test_recargar_permisos(self, db, gestor_usuario, usuarios):
        assert not gestor_usuario.tiene_permiso(Modulo.ENFERMERIA, Accion.READ)
        db.replace_permisos_usuario(usuarios["usuario"], [permiso("enfermeria", r=True)])
        assert gestor_usuario.recargar_permisos() is True
        assert gestor_usuario.tiene_permiso(Modulo.ENFERMERIA, Accion.READ)


class TestCierreSesion:

    def test_cerrar_sesion_limpia_todo(self, gestor_admin, almacen):
        gestor_admin.cerrar_sesion()
        assert gestor_admin.sesion is None
        assert gestor_admin.permisos == []
        assert almacen.get(CLAVE_MARCA_SESION) is None
        assert almacen.get(CLAVE_USUARIO_SESION) is None

    def test_cerrar_sesion_es_idempotente(self, gestor_admin, capsys):
        gestor_admin.cerrar_sesion()
        capsys.readouterr()
        gestor_admin.cerrar_sesion()
        assert capsys.readouterr().out == ""
        assert not gestor_admin.autenticado


class TestRestaurarSesion:

    def test_restaura_desde_almacen(self, db, gestor_usuario, almacen, usuarios):
        db.replace_permisos_usuario(usuarios["usuario"], [permiso("incapacidades", r=True)])
        nuevo = GestorSesion(gestor_usuario.autenticador, db.get_permisos_usuario, almacen)
        assert nuevo.restaurar() is True
        assert nuevo.sesion.identidad == gestor_usuario.sesion.identidad
        assert nuevo.tiene_permiso(Modulo.INCAPACIDADES, Accion.READ)

    def test_sin_marca_no_restaura(self, gestor, almacen):
        almacen.set(CLAVE_USUARIO_SESION, json.dumps({"id": "1", "email": "a@b.co", "role": "Admin"}))
        assert gestor.restaurar() is False
        assert not gestor.autenticado

    def test_identidad_corrupta_se_descarta(self, gestor, almacen):
        almacen.set(CLAVE_MARCA_SESION, VALOR_MARCA_SESION)
        almacen.set(CLAVE_USUARIO_SESION, "{no es json")
        assert gestor.restaurar() is False
        assert almacen.get(CLAVE_MARCA_SESION) is None

    def test_identidad_incompleta_se_descarta(self, gestor, almacen):
        almacen.set(CLAVE_MARCA_SESION, VALOR_MARCA_SESION)
        almacen.set(CLAVE_USUARIO_SESION, json.dumps({"id": "1", "email": "a@b.co"}))
        assert gestor.restaurar() is False

    def test_restaurar_con_fallo_de_permisos(self, almacen):
        almacen.set(CLAVE_MARCA_SESION, VALOR_MARCA_SESION)
        almacen.set(CLAVE_USUARIO_SESION, json.dumps({"id": "u-1", "email": "u@example.org", "role": "Usuario"}))
        gestor = GestorSesion(AutenticadorFijo(None), fallar_permisos, almacen)
        assert gestor.restaurar() is True
        assert gestor.autenticado
        assert gestor.rol == "Usuario"
        assert gestor.permisos == []


class TestAlmacenSesion:

    def test_archivo_ilegible_se_trata_como_vacio(self, tmp_path):
        ruta = tmp_path / "sesion.json"
        ruta.write_text("[[[", encoding="utf-8")
        almacen = AlmacenSesion(str(ruta))
        assert almacen.get(CLAVE_MARCA_SESION) is None
        almacen.set("clave", "valor")
        assert almacen.get("clave") == "valor"

    def test_crea_directorio(self, tmp_path):
        almacen = AlmacenSesion(str(tmp_path / "datos" / "sesion.json"))
        almacen.set("clave", "valor")
        almacen.remove("clave")
        assert almacen.get("clave") is None
