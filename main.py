# main.py
import logging
import os

from colorama import Fore

from app.auth import ServicioAutenticacion, login
from app.config import cargar_ajustes, configurar_logging
from app.database import DatabaseManager
from app.errors import BackendUnavailable
from app.menus import mostrar_menu_principal
from app.sesion import AlmacenSesion, GestorSesion
from app.ui import mostrar_encabezado

logger = logging.getLogger("novedades")


def main():
    """
    Función principal que inicializa la base de datos y corre el bucle de la aplicación.
    """
    ajustes = cargar_ajustes()
    configurar_logging(ajustes)

    # Asegurarse de que el directorio de la base de datos exista
    if ajustes.db_name != ":memory:" and not os.path.exists(ajustes.db_path):
        os.makedirs(ajustes.db_path)
        print(Fore.CYAN + f"Directorio '{ajustes.db_path}' creado.")

    db = DatabaseManager(ajustes.db_full_path)
    admin_creado, admin_pass = db.inicializar_admin_si_no_existe(
        ajustes.admin_email, ajustes.admin_password, ajustes.bcrypt_rounds)

    gestor = GestorSesion(ServicioAutenticacion(db), db.get_permisos_usuario, AlmacenSesion(ajustes.session_file))
    gestor.restaurar()
    logger.info("Aplicación iniciada (entorno: %s).", ajustes.environment)

    while True:
        if not gestor.autenticado:
            autenticado = login(gestor, admin_creado, ajustes.admin_email, admin_pass or "",
                                ajustes.login_detailed_errors)
            admin_creado = False
            if not autenticado:
                break

        if not mostrar_menu_principal(db, gestor, ajustes):
            break

    mostrar_encabezado("Fin del Programa")
    print(Fore.GREEN + "\n¡Gracias por usar el Sistema de Gestión de Novedades del Personal!")
    db.close()
    print(Fore.GREEN + "Conexión a la base de datos cerrada.")
    logger.info("Aplicación finalizada.")


def run():
    try:
        main()
    except KeyboardInterrupt:
        print(Fore.RED + "\n\nPrograma interrumpido por el usuario.")
    except BackendUnavailable as e:
        logger.exception("Base de datos no disponible")
        print(Fore.RED + f"\n\n❌ {e.mensaje}")
    except Exception as e:
        logger.exception("Error inesperado")
        print(Fore.RED + f"\n\n❌ Un error inesperado ha ocurrido: {str(e)}")


if __name__ == "__main__":
    run()
