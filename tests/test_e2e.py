"""
Escenarios completos: base de datos, autenticación, sesión, guarda y módulos juntos.
"""
import pytest

from app import ui
from app.errors import BackendUnavailable, InvalidCredential
from app.guardia import Decision, evaluar_ruta
from app.modules import incapacidades
from app.permisos import Accion, Modulo, tiene_permiso
from app.sesion import GestorSesion
from conftest import CLAVE_ADMIN, EMAIL_ADMIN, permiso

INCAPACIDAD = {
    "numero_id": "7654321", "nombre_completo": "Luis Gómez", "fecha_inicio": "2024-01-01",
    "fecha_fin": "2024-01-03", "diagnostico": "Migraña", "tipo_incapacidad": "Enfermedad General",
}


def test_admin_inicia_sesion_y_tiene_todo(db, gestor, usuarios):
    gestor.iniciar_sesion(EMAIL_ADMIN, CLAVE_ADMIN)
    assert gestor.rol == "Admin"
    assert tiene_permiso(gestor.rol, [], Modulo.USUARIOS, Accion.DELETE) is True


def test_contrasena_incorrecta_no_abre_sesion(db, gestor, usuarios):
    with pytest.raises(InvalidCredential):
        gestor.iniciar_sesion(EMAIL_ADMIN, "Incorrecta1")
    assert gestor.sesion is None


def test_logout_redirige_al_login(db, gestor, usuarios):
    gestor.iniciar_sesion(EMAIL_ADMIN, CLAVE_ADMIN)
    gestor.cerrar_sesion()
    assert evaluar_ruta(gestor, Modulo.NOVEDADES) is Decision.REDIRIGIR_LOGIN


def test_usuario_con_permisos_parciales_en_incapacidades(db, gestor_usuario, usuarios, otorgar, capsys):
    otorgar(usuarios["usuario"], permiso("incapacidades", c=True, r=True))

    incapacidad_id = incapacidades.crear_incapacidad(db, gestor_usuario, INCAPACIDAD)
    assert incapacidad_id
    assert [i["id"] for i in incapacidades.listar_incapacidades(db, gestor_usuario)] == [incapacidad_id]
    capsys.readouterr()

    assert incapacidades.eliminar_incapacidad(db, gestor_usuario, incapacidad_id) is None
    assert "ACCESO DENEGADO" in capsys.readouterr().out
    assert db.count("incapacidades") == 1


def test_sesion_restaurada_sin_permisos_por_fallo(db, gestor_usuario, usuarios, monkeypatch):
    def fallar(user_id):
        raise BackendUnavailable("sin conexión")

    monkeypatch.setattr(ui, "notificar_aviso", lambda mensaje: None)
    restaurado = GestorSesion(gestor_usuario.autenticador, fallar, gestor_usuario.almacen)
    assert restaurado.restaurar() is True
    assert restaurado.rol == "Usuario"
    assert restaurado.permisos == []
    assert evaluar_ruta(restaurado, None) is Decision.RENDERIZAR
