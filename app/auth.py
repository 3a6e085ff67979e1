# app/auth.py
import logging
import re
import secrets
import string
import time

import bcrypt
from colorama import Fore, Style

from . import ui
from .config import BCRYPT_ROUNDS_MINIMO
from .database import DatabaseManager
from .errors import AuthError, BackendUnavailable, IdentityNotFound, InvalidCredential, LoginInProgress, ValidationError
from .sesion import GestorSesion, Identidad

logger = logging.getLogger("novedades.auth")

MAX_INTENTOS_LOGIN = 3
# bcrypt solo admite hasta 72 bytes de contraseña
MAX_BYTES_CONTRASENA = 72


def hash_contrasena(contrasena: str, rondas: int = BCRYPT_ROUNDS_MINIMO) -> str:
    if len(contrasena.encode('utf-8')) > MAX_BYTES_CONTRASENA:
        raise ValidationError(f"La contraseña no puede superar los {MAX_BYTES_CONTRASENA} bytes.")
    salt = bcrypt.gensalt(rounds=max(rondas, BCRYPT_ROUNDS_MINIMO))
    return bcrypt.hashpw(contrasena.encode('utf-8'), salt).decode('utf-8')


def verificar_contrasena(contrasena: str, hash_almacenado: str) -> bool:
    """Compara contra el hash bcrypt. Cualquier error se interpreta como 'no coincide'."""
    if not contrasena or not hash_almacenado:
        return False
    try:
        return bcrypt.checkpw(contrasena.encode('utf-8'), hash_almacenado.encode('utf-8'))
    except (ValueError, TypeError, AttributeError):
        logger.warning("Hash de contraseña con formato inválido; se rechaza la verificación.")
        return False


def validar_contrasena(contrasena: str) -> bool:
    if len(contrasena) < 8: return False
    if len(contrasena.encode('utf-8')) > MAX_BYTES_CONTRASENA: return False
    if not re.search(r'[A-Za-z]', contrasena): return False
    if not re.search(r'[0-9]', contrasena): return False
    return True


def generar_contrasena_temporal() -> str:
    alfabeto = string.ascii_letters + string.digits
    while True:
        candidata = ''.join(secrets.choice(alfabeto) for _ in range(12))
        if validar_contrasena(candidata):
            return candidata


def validar_email(email: str) -> bool:
    patron = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return re.match(patron, email) is not None


class ServicioAutenticacion:
    """
    Frontera de autenticación: recibe correo y contraseña y devuelve solo la
    identidad pública. El hash nunca sale de aquí.
    """
    def __init__(self, db: DatabaseManager):
        self.db = db

    def autenticar(self, email: str, contrasena: str) -> Identidad:
        user_data = self.db.get_user_by_email(email)
        if user_data is None:
            logger.info("Intento de inicio de sesión con correo no registrado.")
            raise IdentityNotFound("Usuario no encontrado. Verifique su correo.")
        if not verificar_contrasena(contrasena, user_data['password_hash']):
            logger.info("Contraseña incorrecta para el usuario %s.", user_data['id'])
            raise InvalidCredential("Contraseña incorrecta.")
        try:
            self.db.log_login_attempt(user_data['id'])
        except BackendUnavailable:
            logger.exception("No se pudo registrar el inicio de sesión de %s.", user_data['id'])
        return Identidad(user_data['id'], user_data['email'], user_data['role'])


def login(gestor: GestorSesion, admin_creado: bool = False, admin_email: str = "",
          admin_pass: str = "", mensajes_detallados: bool = False) -> bool:
    """Pantalla de inicio de sesión. Devuelve True si el usuario quedó autenticado."""
    error_message, email, intentos = "", "", 0
    while intentos < MAX_INTENTOS_LOGIN:
        ui.mostrar_encabezado("Inicio de Sesión")
        print("Bienvenido al sistema de Gestión de Novedades del Personal (GNP).")
        if admin_creado:
            print(Fore.GREEN + "\n✨ ¡Primera ejecución! Se ha creado el usuario administrador:")
            print(f"   - Correo: {Style.BRIGHT}{admin_email}{Style.RESET_ALL}")
            if admin_pass:
                print(f"   - Contraseña temporal: {Style.BRIGHT}{admin_pass}{Style.RESET_ALL}")
                print(Fore.YELLOW + "   Cámbiela desde el módulo de Usuarios después de iniciar sesión.")
        print(Fore.WHITE + "─" * 80)
        if error_message: print(Fore.RED + f"\n{error_message}\n")

        email = ui.solicitar_input(Fore.YELLOW + "📧 Ingrese su correo (o 'q' para salir): ", default=email)
        if email.lower() == 'q': return False
        if not email: error_message = ""; continue
        contrasena = ui.solicitar_contrasena_con_asteriscos(Fore.YELLOW + "🔑 Ingrese su contraseña: ")
        if not contrasena: error_message = ""; continue

        print(Fore.CYAN + "\nValidando credenciales...", end="", flush=True); time.sleep(0.5)
        print("\r" + " " * 30 + "\r", end="", flush=True)

        try:
            gestor.iniciar_sesion(email, contrasena)
        except LoginInProgress as e:
            error_message = f"❌ {e.mensaje}"
            continue
        except AuthError as e:
            error_message = f"❌ {e.mensaje if mensajes_detallados else AuthError.mensaje_usuario}"
            intentos += 1
            continue
        except BackendUnavailable as e:
            error_message = f"❌ {e.mensaje}"
            intentos += 1
            continue
        return True
    print(Fore.RED + "\n❌ Demasiados intentos fallidos."); return False
