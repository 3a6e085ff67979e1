# app/modules/gestion_usuarios.py
import logging
from typing import Dict, List, Optional

from colorama import Fore, Style

from .. import ui
from ..auth import hash_contrasena, validar_contrasena, validar_email
from ..config import BCRYPT_ROUNDS_MINIMO, MODULOS_EDITABLES, NOMBRES_MODULOS, ROLES
from ..database import DatabaseManager
from ..errors import AppError, Forbidden, ValidationError
from ..exportacion import exportar_excel
from ..guardia import requiere_permiso
from ..permisos import Accion, Modulo, PermisoModulo, buscar_permiso, permisos_desde_filas
from ..sesion import GestorSesion
from .comun import filtrar_registros, seleccionar_registro

logger = logging.getLogger("novedades.usuarios")

COLUMNAS_USUARIOS = [("email", "CORREO", 30), ("role", "ROL", 8), ("created_at", "CREADO", 20),
                     ("ultima_sesion", "ÚLTIMA SESIÓN", 20)]
COLUMNAS_EXPORTACION = [("email", "Correo"), ("role", "Rol"), ("created_at", "Fecha de Creación"),
                        ("ultima_sesion", "Última Sesión")]
MENSAJE_CONTRASENA = "La contraseña debe tener entre 8 caracteres y 72 bytes, con letras y números."


def _validar_datos_usuario(db: DatabaseManager, email: str, rol: str, excluir_id: Optional[str] = None) -> str:
    email = (email or "").strip().lower()
    if not validar_email(email):
        raise ValidationError("El formato del correo no es válido.")
    if rol not in ROLES:
        raise ValidationError(f"Rol no válido: {rol}")
    if db.check_if_email_exists(email, excluir_id):
        raise ValidationError("Este correo ya está registrado.")
    return email


@requiere_permiso(Modulo.USUARIOS, Accion.READ)
def listar_usuarios(db: DatabaseManager, gestor: GestorSesion, termino: str = "") -> List[Dict]:
    usuarios = db.get_all_users()
    for usuario in usuarios:
        usuario["ultima_sesion"] = db.get_last_login_for_user(usuario["id"]) or "Nunca"
    return filtrar_registros(usuarios, termino, ("email", "role"))


@requiere_permiso(Modulo.USUARIOS, Accion.CREATE)
def crear_usuario(db: DatabaseManager, gestor: GestorSesion, email: str, contrasena: str, rol: str,
                  rondas: int = BCRYPT_ROUNDS_MINIMO) -> str:
    email = _validar_datos_usuario(db, email, rol)
    if not validar_contrasena(contrasena):
        raise ValidationError(MENSAJE_CONTRASENA)
    user_id = db.insert("users", [{"email": email, "password_hash": hash_contrasena(contrasena, rondas), "role": rol}])[0]
    db.registrar_movimiento_sistema("Creación de Usuario", f"Se creó el usuario '{email}' con el rol '{rol}'.", gestor.sesion.identidad.email)
    logger.info("Usuario %s creado por %s.", user_id, gestor.usuario_actual_id)
    return user_id


@requiere_permiso(Modulo.USUARIOS, Accion.UPDATE)
def actualizar_usuario(db: DatabaseManager, gestor: GestorSesion, user_id: str, email: str, rol: str,
                       nueva_contrasena: str = "", rondas: int = BCRYPT_ROUNDS_MINIMO) -> bool:
    """Actualiza correo y rol. Con contraseña vacía se conserva el hash actual."""
    anterior = db.get_user_by_id(user_id)
    if anterior is None:
        return False
    email = _validar_datos_usuario(db, email, rol, excluir_id=user_id)
    datos = {"email": email, "role": rol}
    if nueva_contrasena:
        if not validar_contrasena(nueva_contrasena):
            raise ValidationError(MENSAJE_CONTRASENA)
        datos["password_hash"] = hash_contrasena(nueva_contrasena, rondas)
    actualizado = db.update("users", user_id, datos)
    if actualizado:
        detalles = f"Usuario '{anterior['email']}' actualizado (correo: '{email}', rol: '{rol}'"
        detalles += ", contraseña cambiada)." if nueva_contrasena else ")."
        db.registrar_movimiento_sistema("Modificación de Usuario", detalles, gestor.sesion.identidad.email)
    return actualizado


@requiere_permiso(Modulo.USUARIOS, Accion.DELETE)
def eliminar_usuario(db: DatabaseManager, gestor: GestorSesion, user_id: str) -> bool:
    if user_id == gestor.usuario_actual_id:
        raise Forbidden(Modulo.USUARIOS, Accion.DELETE, "No puede eliminar su propio usuario.")
    usuario = db.get_user_by_id(user_id)
    if usuario is None:
        return False
    eliminado = db.delete("users", user_id)
    if eliminado:
        db.registrar_movimiento_sistema("Eliminación de Usuario", f"Se eliminó el usuario '{usuario['email']}'.", gestor.sesion.identidad.email)
    return eliminado


@requiere_permiso(Modulo.USUARIOS, Accion.READ)
def obtener_permisos_usuario(db: DatabaseManager, gestor: GestorSesion, user_id: str) -> Dict[str, PermisoModulo]:
    """Permisos de los módulos editables; los que no tienen registro quedan en falso."""
    permisos = permisos_desde_filas(db.get_permisos_usuario(user_id))
    resultado = {}
    for nombre in MODULOS_EDITABLES:
        modulo = Modulo(nombre)
        resultado[nombre] = buscar_permiso(permisos, modulo) or PermisoModulo(modulo)
    return resultado


@requiere_permiso(Modulo.USUARIOS, Accion.UPDATE)
def guardar_permisos_usuario(db: DatabaseManager, gestor: GestorSesion, user_id: str,
                             permisos: List[PermisoModulo]) -> bool:
    """Reemplaza todos los permisos del usuario por el conjunto recibido."""
    if db.get_user_by_id(user_id) is None:
        return False
    modulos = [p.module.value for p in permisos]
    no_editables = [m for m in modulos if m not in MODULOS_EDITABLES]
    if no_editables:
        raise ValidationError(f"Módulos no editables: {', '.join(no_editables)}")
    if len(set(modulos)) != len(modulos):
        raise ValidationError("Hay módulos repetidos en los permisos.")

    db.replace_permisos_usuario(user_id, [p.to_dict() for p in permisos])
    resumen = ", ".join(repr(p) for p in permisos) or "sin permisos"
    db.registrar_movimiento_sistema("Cambio de Permisos", f"Permisos de {user_id}: {resumen}", gestor.sesion.identidad.email)
    if user_id == gestor.usuario_actual_id:
        gestor.recargar_permisos()
    return True


@requiere_permiso(Modulo.USUARIOS, Accion.READ)
def exportar_usuarios(db: DatabaseManager, gestor: GestorSesion, directorio: str) -> str:
    usuarios = listar_usuarios(db, gestor)
    ruta = exportar_excel(directorio, "usuarios", "Usuarios", COLUMNAS_EXPORTACION, usuarios)
    db.registrar_movimiento_sistema("Exportación", f"Exportados {len(usuarios)} usuarios.", gestor.sesion.identidad.email)
    return ruta


# --- Pantallas ---
def menu_usuarios(db: DatabaseManager, gestor: GestorSesion, ajustes):
    """Menú principal para la gestión de usuarios."""
    rondas = ajustes.bcrypt_rounds if ajustes else BCRYPT_ROUNDS_MINIMO
    while True:
        ui.mostrar_encabezado("Gestión de Usuarios", gestor=gestor)
        try:
            usuarios = listar_usuarios(db, gestor)
        except AppError as e:
            ui.notificar_error(f"Error al cargar los usuarios: {e.mensaje}"); ui.pausar_pantalla(); return
        if usuarios is None:
            ui.pausar_pantalla(); return
        ui.mostrar_tabla(COLUMNAS_USUARIOS, usuarios, vacio="No hay usuarios registrados.")

        opciones = ["Nuevo usuario", "Editar usuario", "Eliminar usuario", "Gestionar permisos",
                    "Ver log del sistema", "Exportar a Excel", "Volver"]
        ui.mostrar_menu(opciones)
        opcion = ui.solicitar_input(Fore.YELLOW + "Seleccione una acción: ")

        try:
            if opcion == '1': _registrar_usuario(db, gestor, rondas)
            elif opcion == '2': _editar_usuario(db, gestor, usuarios, rondas)
            elif opcion == '3': _eliminar_usuario(db, gestor, usuarios)
            elif opcion == '4': _editar_permisos(db, gestor, usuarios)
            elif opcion == '5': _ver_log_sistema(db, gestor); continue
            elif opcion == '6':
                ruta = exportar_usuarios(db, gestor, ajustes.export_path)
                if ruta: ui.notificar_exito(f"Archivo exportado exitosamente: {ruta}")
            elif opcion == '7': break
            else: print(Fore.RED + "Opción no válida.")
        except (AppError, OSError) as e:
            logger.warning("Operación de usuarios fallida: %s", e)
            ui.notificar_error(getattr(e, "mensaje", str(e)))
        except KeyboardInterrupt:
            print(Fore.CYAN + "\n\n🚫 Operación cancelada.")
        ui.pausar_pantalla()


def _solicitar_rol(actual: Optional[str] = None) -> Optional[str]:
    rol = ui.seleccionar_opcion("Roles disponibles", ROLES, actual)
    if rol is None:
        print(Fore.RED + "Selección de rol no válida.")
    return rol


def _registrar_usuario(db: DatabaseManager, gestor: GestorSesion, rondas: int):
    ui.mostrar_encabezado("Registrar Nuevo Usuario", gestor=gestor)
    email = ui.solicitar_input(Fore.YELLOW + "Correo electrónico: ").lower()
    if not email:
        print(Fore.YELLOW + "\nOperación cancelada."); return
    contrasena = ui.solicitar_contrasena_con_asteriscos(Fore.YELLOW + "Contraseña: ")
    if contrasena != ui.solicitar_contrasena_con_asteriscos(Fore.YELLOW + "Confirme la contraseña: "):
        ui.notificar_error("Las contraseñas no coinciden."); return
    rol = _solicitar_rol()
    if rol is None: return
    if crear_usuario(db, gestor, email, contrasena, rol, rondas):
        ui.notificar_exito("Usuario creado exitosamente.")


def _editar_usuario(db: DatabaseManager, gestor: GestorSesion, usuarios: list, rondas: int):
    usuario = seleccionar_registro(usuarios, "usuario")
    if not usuario: return
    ui.mostrar_encabezado(f"Editar Usuario: {usuario['email']}", gestor=gestor)
    email = ui.solicitar_input(Fore.YELLOW + f"Correo (Enter = {usuario['email']}): ", default=usuario['email']).lower()
    rol = _solicitar_rol(usuario['role'])
    if rol is None: return
    nueva = ui.solicitar_contrasena_con_asteriscos(Fore.YELLOW + "Nueva contraseña (Enter para conservar la actual): ")
    if nueva and nueva != ui.solicitar_contrasena_con_asteriscos(Fore.YELLOW + "Confirme la contraseña: "):
        ui.notificar_error("Las contraseñas no coinciden."); return
    resultado = actualizar_usuario(db, gestor, usuario['id'], email, rol, nueva, rondas)
    if resultado:
        ui.notificar_exito("Usuario actualizado exitosamente.")
    elif resultado is not None:
        ui.notificar_error("El usuario ya no existe.")


def _eliminar_usuario(db: DatabaseManager, gestor: GestorSesion, usuarios: list):
    usuario = seleccionar_registro(usuarios, "usuario")
    if not usuario: return
    if usuario['id'] == gestor.usuario_actual_id:
        ui.notificar_error("No puede eliminar su propio usuario."); return
    ui.mostrar_encabezado("Confirmar Eliminación de Usuario", color=Fore.RED, gestor=gestor)
    print(Fore.YELLOW + f"Está a punto de eliminar al usuario '{usuario['email']}' y todos sus permisos.")
    confirmacion = ui.solicitar_input(f"Para confirmar, escriba el correo del usuario ({usuario['email']}): ").lower()
    if confirmacion == usuario['email']:
        resultado = eliminar_usuario(db, gestor, usuario['id'])
        if resultado:
            ui.notificar_exito("Usuario eliminado exitosamente.")
        elif resultado is not None:
            ui.notificar_error("El usuario ya no existe.")
    else:
        print(Fore.RED + "\nLa confirmación no coincide. Operación cancelada.")


def _marcas(permiso: PermisoModulo) -> str:
    return "".join(letra if activo else "-" for letra, activo in (
        ("C", permiso.can_create), ("R", permiso.can_read), ("U", permiso.can_update), ("D", permiso.can_delete)))


def _editar_permisos(db: DatabaseManager, gestor: GestorSesion, usuarios: list):
    usuario = seleccionar_registro(usuarios, "usuario")
    if not usuario: return
    actuales = obtener_permisos_usuario(db, gestor, usuario['id'])
    if actuales is None: return

    ui.mostrar_encabezado(f"Permisos de {usuario['email']}", gestor=gestor)
    print(Fore.CYAN + "Indique las letras de los permisos: C=crear, R=leer, U=actualizar, D=eliminar.")
    print(Fore.CYAN + "Enter conserva el valor actual; '-' quita todos los permisos del módulo.\n" + Style.RESET_ALL)
    nuevos = []
    for nombre, permiso in actuales.items():
        entrada = ui.solicitar_input(Fore.YELLOW + f"{NOMBRES_MODULOS[nombre]:<15} [{_marcas(permiso)}]: ").upper()
        if not entrada:
            nuevos.append(permiso); continue
        if entrada != "-" and any(letra not in "CRUD" for letra in entrada):
            ui.notificar_error(f"Valor no válido para {NOMBRES_MODULOS[nombre]}. Operación cancelada."); return
        nuevos.append(PermisoModulo(Modulo(nombre), "C" in entrada, "R" in entrada, "U" in entrada, "D" in entrada))

    print("\n" + "  ".join(f"{NOMBRES_MODULOS[p.module.value]}: {_marcas(p)}" for p in nuevos))
    if ui.confirmar("¿Guardar estos permisos?"):
        if guardar_permisos_usuario(db, gestor, usuario['id'], nuevos):
            ui.notificar_exito("Permisos actualizados exitosamente.")
    else:
        print(Fore.YELLOW + "\nOperación cancelada.")


@requiere_permiso(Modulo.USUARIOS, Accion.READ)
def _ver_log_sistema(db: DatabaseManager, gestor: GestorSesion, page_size: int = 15):
    """Muestra el log del sistema de forma paginada."""
    pagina = 1
    while True:
        logs, total_paginas = db.get_log_sistema_paginated(pagina, page_size)
        ui.mostrar_encabezado(f"Log del Sistema (Página {pagina}/{total_paginas})", gestor=gestor)
        ui.mostrar_log_sistema(logs)
        print(Fore.YELLOW + "[S] Siguiente  [A] Anterior  [Q] Volver" + Style.RESET_ALL)
        opcion = ui.solicitar_input(Fore.YELLOW + "Seleccione una opción: ").lower()
        if opcion == 's' and pagina < total_paginas: pagina += 1
        elif opcion == 'a' and pagina > 1: pagina -= 1
        elif opcion == 'q': break
