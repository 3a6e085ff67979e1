"""
Tests de la guarda de rutas (app/guardia.py) y del menú principal (app/menus.py).
"""
import pytest

from app import menus, ui
from app.errors import BackendUnavailable, Forbidden
from app.guardia import Decision, evaluar_ruta, exigir_permiso, requiere_permiso
from app.modules.dashboard import mostrar_dashboard
from app.permisos import Accion, Modulo
from conftest import permiso


@requiere_permiso(Modulo.INCAPACIDADES, Accion.DELETE)
def borrar(db, gestor, registro_id):
    borrar.llamadas.append(registro_id)
    return True


borrar.llamadas = []


@pytest.fixture(autouse=True)
def limpiar_llamadas():
    borrar.llamadas.clear()


class TestEvaluarRuta:

    def test_sin_sesion_redirige_al_login(self, gestor):
        assert evaluar_ruta(gestor, Modulo.NOVEDADES) is Decision.REDIRIGIR_LOGIN
        assert evaluar_ruta(gestor, None) is Decision.REDIRIGIR_LOGIN

    def test_dashboard_abierto_para_todos(self, gestor_usuario):
        assert evaluar_ruta(gestor_usuario, None) is Decision.RENDERIZAR
        assert evaluar_ruta(gestor_usuario, Modulo.DASHBOARD) is Decision.RENDERIZAR

    def test_modulo_sin_permiso(self, gestor_usuario):
        assert evaluar_ruta(gestor_usuario, Modulo.NOVEDADES) is Decision.ACCESO_DENEGADO

    def test_admin_entra_a_todo(self, gestor_admin):
        for modulo in Modulo:
            assert evaluar_ruta(gestor_admin, modulo, Accion.DELETE) is Decision.RENDERIZAR

    def test_logout_vuelve_a_redirigir(self, gestor_admin):
        assert evaluar_ruta(gestor_admin, Modulo.USUARIOS) is Decision.RENDERIZAR
        gestor_admin.cerrar_sesion()
        assert evaluar_ruta(gestor_admin, Modulo.USUARIOS) is Decision.REDIRIGIR_LOGIN

    def test_se_reevalua_tras_cambiar_permisos(self, gestor_usuario, usuarios, otorgar):
        assert evaluar_ruta(gestor_usuario, Modulo.NOVEDADES) is Decision.ACCESO_DENEGADO
        otorgar(usuarios["usuario"], permiso("novedades", r=True))
        assert evaluar_ruta(gestor_usuario, Modulo.NOVEDADES) is Decision.RENDERIZAR


class TestExigirPermiso:

    def test_lanza_forbidden(self, gestor_usuario):
        with pytest.raises(Forbidden) as info:
            exigir_permiso(gestor_usuario, Modulo.ENFERMERIA, Accion.UPDATE)
        assert info.value.modulo is Modulo.ENFERMERIA
        assert info.value.accion is Accion.UPDATE

    def test_permitido_no_lanza(self, gestor_admin):
        exigir_permiso(gestor_admin, Modulo.ENFERMERIA, Accion.UPDATE)


class TestRequierePermiso:

    def test_denegado_muestra_acceso_denegado(self, db, gestor_usuario, capsys):
        assert borrar(db, gestor_usuario, "x") is None
        salida = capsys.readouterr().out
        assert "ACCESO DENEGADO" in salida
        assert "No tiene permisos para esta acción." in salida
        assert borrar.llamadas == []

    def test_sin_sesion_pide_login(self, db, gestor, capsys):
        assert borrar(db, gestor, "x") is None
        assert "Inicie sesión" in capsys.readouterr().out
        assert borrar.llamadas == []

    def test_permitido_ejecuta(self, db, gestor_usuario, usuarios, otorgar):
        otorgar(usuarios["usuario"], permiso("incapacidades", d=True))
        assert borrar(db, gestor_usuario, "x") is True
        assert borrar.llamadas == ["x"]


class TestMenuPrincipal:

    def test_usuario_solo_ve_sus_modulos(self, gestor_usuario, usuarios, otorgar):
        otorgar(usuarios["usuario"], permiso("novedades", r=True), permiso("enfermeria", c=True))
        textos = [texto for texto, _, _ in menus.rutas_visibles(gestor_usuario)]
        assert textos == ["📊 Dashboard", "📝 Novedades"]

    def test_admin_ve_todo(self, gestor_admin):
        assert len(menus.rutas_visibles(gestor_admin)) == len(menus.RUTAS)

    def test_navegar_denegado(self, db, gestor_usuario, ajustes, monkeypatch, capsys):
        monkeypatch.setattr(ui, "pausar_pantalla", lambda: None)
        abiertas = []
        decision = menus.navegar(db, gestor_usuario, ajustes, Modulo.INCAPACIDADES,
                                 lambda *args: abiertas.append(args))
        assert decision is Decision.ACCESO_DENEGADO
        assert abiertas == []
        assert "ACCESO DENEGADO" in capsys.readouterr().out

    def test_navegar_sin_sesion(self, db, gestor, ajustes):
        abiertas = []
        decision = menus.navegar(db, gestor, ajustes, None, lambda *args: abiertas.append(args))
        assert decision is Decision.REDIRIGIR_LOGIN
        assert abiertas == []

    def test_navegar_con_base_de_datos_caida(self, db, gestor_admin, ajustes, monkeypatch, capsys):
        def falla(*args, **kwargs):
            raise BackendUnavailable("sin conexión")
        monkeypatch.setattr(db, "count", falla)
        monkeypatch.setattr(ui, "pausar_pantalla", lambda: None)
        decision = menus.navegar(db, gestor_admin, ajustes, None, mostrar_dashboard)
        assert decision is Decision.RENDERIZAR
        assert "sin conexión" in capsys.readouterr().out
        assert gestor_admin.autenticado

    def test_salir_mantiene_sesion(self, db, gestor_admin, ajustes, monkeypatch):
        salida = str(len(menus.RUTAS) + 3)
        monkeypatch.setattr(ui, "solicitar_input", lambda prompt, default="": salida)
        assert menus.mostrar_menu_principal(db, gestor_admin, ajustes) is False
        assert gestor_admin.autenticado

    def test_cerrar_sesion_desde_menu(self, db, gestor_admin, ajustes, monkeypatch):
        cerrar = str(len(menus.RUTAS) + 2)
        monkeypatch.setattr(ui, "solicitar_input", lambda prompt, default="": cerrar)
        monkeypatch.setattr(ui, "pausar_pantalla", lambda: None)
        monkeypatch.setattr(menus.time, "sleep", lambda segundos: None)
        assert menus.mostrar_menu_principal(db, gestor_admin, ajustes) is True
        assert not gestor_admin.autenticado
