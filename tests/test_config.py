"""
Tests de la configuración (app/config.py) y de la exportación a Excel (app/exportacion.py).
"""
import os

import pytest
from openpyxl import load_workbook

from app.config import Ajustes, cargar_ajustes
from app.exportacion import exportar_excel


class TestAjustes:

    def test_valores_del_entorno(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DB_PATH", str(tmp_path))
        monkeypatch.setenv("DB_NAME", "prueba.db")
        monkeypatch.setenv("BCRYPT_ROUNDS", "12")
        monkeypatch.setenv("LOGIN_DETAILED_ERRORS", "true")
        monkeypatch.setenv("ADMIN_EMAIL", "jefe@example.org")
        ajustes = cargar_ajustes()
        assert ajustes.db_full_path == os.path.join(str(tmp_path), "prueba.db")
        assert ajustes.session_file == os.path.join(str(tmp_path), "sesion.json")
        assert ajustes.bcrypt_rounds == 12
        assert ajustes.login_detailed_errors is True
        assert ajustes.admin_email == "jefe@example.org"

    @pytest.mark.parametrize("valor", ["4", "no-es-numero"])
    def test_rondas_bcrypt_nunca_bajo_diez(self, monkeypatch, valor):
        monkeypatch.setenv("BCRYPT_ROUNDS", valor)
        assert cargar_ajustes().bcrypt_rounds == 10

    def test_base_en_memoria(self):
        assert Ajustes(db_name=":memory:").db_full_path == ":memory:"

    def test_contrasena_admin_vacia_es_none(self, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "")
        assert cargar_ajustes().admin_password is None


class TestExportarExcel:

    def test_encabezados_y_booleanos(self, tmp_path):
        filas = [{"nombre": "Fiebre", "activo": True}, {"nombre": "Tos", "activo": False}]
        ruta = exportar_excel(str(tmp_path / "salida"), "sintomas", "Síntomas",
                              [("nombre", "Nombre"), ("activo", "Activo")], filas)
        assert os.path.basename(ruta).startswith("sintomas_")
        hoja = load_workbook(ruta).active
        assert [c.value for c in hoja[1]] == ["Nombre", "Activo"]
        assert [c.value for c in hoja[3]] == ["Tos", "No"]
        assert hoja["A1"].font.bold
