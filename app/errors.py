# app/errors.py


class AppError(Exception):
    """Base de todos los errores controlados de la aplicación."""
    mensaje_usuario = "Ha ocurrido un error inesperado."

    def __init__(self, mensaje: str = None):
        super().__init__(mensaje or self.mensaje_usuario)
        self.mensaje = mensaje or self.mensaje_usuario


class AuthError(AppError):
    mensaje_usuario = "Credenciales incorrectas. Verifique su correo y contraseña."


class IdentityNotFound(AuthError):
    """No existe ningún usuario con el correo indicado."""


class InvalidCredential(AuthError):
    """El usuario existe pero la contraseña no coincide."""


class LoginInProgress(AppError):
    mensaje_usuario = "Ya hay un inicio de sesión en curso."


class BackendUnavailable(AppError):
    mensaje_usuario = "Error al conectar con la base de datos."


class Forbidden(AppError):
    mensaje_usuario = "No tiene permisos para esta acción."

    def __init__(self, modulo=None, accion=None, mensaje: str = None):
        super().__init__(mensaje)
        self.modulo = modulo
        self.accion = accion


class ValidationError(AppError):
    mensaje_usuario = "Los datos ingresados no son válidos."
