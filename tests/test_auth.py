"""
Tests de verificación de credenciales y del servicio de autenticación (app/auth.py).
"""
import time

import pytest

from app import auth, ui
from app.auth import (ServicioAutenticacion, generar_contrasena_temporal, hash_contrasena,
                      validar_contrasena, validar_email, verificar_contrasena)
from app.errors import (AppError, AuthError, BackendUnavailable, IdentityNotFound, InvalidCredential,
                        LoginInProgress, ValidationError)
from app.sesion import EstadoSesion
from conftest import CLAVE_ADMIN, CLAVE_USUARIO, EMAIL_ADMIN, EMAIL_USUARIO


class TestVerificarContrasena:

    def test_hash_y_verificacion(self):
        hashed = hash_contrasena("Secreto123")
        assert hashed != "Secreto123"
        assert verificar_contrasena("Secreto123", hashed) is True

    def test_contrasena_incorrecta(self):
        assert verificar_contrasena("Otra123", hash_contrasena("Secreto123")) is False

    @pytest.mark.parametrize("hash_malo", ["no-es-un-hash", "$2b$10$corto", "", None])
    def test_hash_malformado_devuelve_false(self, hash_malo):
        assert verificar_contrasena("Secreto123", hash_malo) is False

    def test_contrasena_vacia_devuelve_false(self):
        assert verificar_contrasena("", hash_contrasena("Secreto123")) is False

    def test_costo_minimo_de_bcrypt(self):
        assert hash_contrasena("Secreto123", rondas=4).startswith("$2b$10$")
        assert hash_contrasena("Secreto123", rondas=11).startswith("$2b$11$")

    def test_hash_rechaza_mas_de_72_bytes(self):
        with pytest.raises(ValidationError):
            hash_contrasena("Abc1" * 20)


class TestValidaciones:

    @pytest.mark.parametrize("valor,esperado", [
        ("Clave1234", True), ("corta1", False), ("sinnumeros", False), ("12345678", False),
        ("Abc1" * 18, True), ("Abc1" * 20, False), ("Abc1" + "ñ" * 35, False),
    ])
    def test_validar_contrasena(self, valor, esperado):
        assert validar_contrasena(valor) is esperado

    @pytest.mark.parametrize("valor,esperado", [
        ("persona@example.org", True), ("persona@", False), ("sin-arroba.org", False),
    ])
    def test_validar_email(self, valor, esperado):
        assert validar_email(valor) is esperado

    def test_contrasena_temporal(self):
        clave = generar_contrasena_temporal()
        assert len(clave) == 12
        assert validar_contrasena(clave)


class TestServicioAutenticacion:

    def test_identidad_sin_hash(self, db, usuarios):
        identidad = ServicioAutenticacion(db).autenticar(EMAIL_ADMIN, CLAVE_ADMIN)
        assert identidad.to_dict() == {"id": usuarios["admin"], "email": EMAIL_ADMIN, "role": "Admin"}

    def test_correo_no_registrado(self, db, usuarios):
        with pytest.raises(IdentityNotFound):
            ServicioAutenticacion(db).autenticar("nadie@example.org", CLAVE_ADMIN)

    def test_contrasena_incorrecta(self, db, usuarios):
        with pytest.raises(InvalidCredential):
            ServicioAutenticacion(db).autenticar(EMAIL_USUARIO, "Equivocada1")

    def test_registra_ultimo_acceso(self, db, usuarios):
        ServicioAutenticacion(db).autenticar(EMAIL_USUARIO, CLAVE_USUARIO)
        assert db.get_last_login_for_user(usuarios["usuario"]) is not None

    def test_fallo_al_registrar_acceso_no_impide_login(self, db, usuarios, monkeypatch):
        def fallar(user_id):
            raise BackendUnavailable("sin conexión")
        monkeypatch.setattr(db, "log_login_attempt", fallar)
        identidad = ServicioAutenticacion(db).autenticar(EMAIL_USUARIO, CLAVE_USUARIO)
        assert identidad.role == "Usuario"


class TestPantallaLogin:

    @pytest.fixture(autouse=True)
    def sin_espera(self, monkeypatch):
        monkeypatch.setattr(time, "sleep", lambda segundos: None)

    def _entradas(self, monkeypatch, correos, claves):
        correos, claves = iter(correos), iter(claves)
        monkeypatch.setattr(ui, "solicitar_input", lambda prompt, default="": next(correos))
        monkeypatch.setattr(ui, "solicitar_contrasena_con_asteriscos", lambda prompt: next(claves))

    def test_mensaje_generico_para_correo_y_contrasena(self, gestor, usuarios, monkeypatch, capsys):
        self._entradas(monkeypatch, ["nadie@example.org", EMAIL_ADMIN, EMAIL_ADMIN],
                       ["Cualquiera1", "Equivocada1", CLAVE_ADMIN])
        assert auth.login(gestor) is True
        salida = capsys.readouterr().out
        assert salida.count("Credenciales incorrectas") == 2
        assert "Usuario no encontrado" not in salida
        assert gestor.rol == "Admin"

    def test_mensajes_detallados(self, gestor, usuarios, monkeypatch, capsys):
        self._entradas(monkeypatch, ["nadie@example.org", "q"], ["Cualquiera1"])
        assert auth.login(gestor, mensajes_detallados=True) is False
        assert "Usuario no encontrado" in capsys.readouterr().out
        assert not gestor.autenticado

    def test_demasiados_intentos(self, gestor, usuarios, monkeypatch, capsys):
        self._entradas(monkeypatch, [EMAIL_ADMIN] * 3, ["Mala1111"] * 3)
        assert auth.login(gestor) is False
        assert "Demasiados intentos" in capsys.readouterr().out
        assert gestor.sesion is None

    def test_login_en_curso_no_cuenta_como_intento(self, gestor, usuarios, monkeypatch, capsys):
        gestor.estado = EstadoSesion.AUTENTICANDO
        self._entradas(monkeypatch, [EMAIL_ADMIN] * 3 + ["q"], [CLAVE_ADMIN] * 3)
        assert auth.login(gestor) is False
        salida = capsys.readouterr().out
        assert "Ya hay un inicio de sesión en curso" in salida
        assert "Credenciales incorrectas" not in salida
        assert "Demasiados intentos" not in salida

    def test_login_en_curso_no_es_error_de_credenciales(self):
        assert issubclass(LoginInProgress, AppError)
        assert not issubclass(LoginInProgress, AuthError)
