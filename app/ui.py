# app/ui.py
import os
import sys
from typing import Dict, List, Optional, Sequence, Tuple

from colorama import init, Fore, Style, Back

try:
    import msvcrt
    def get_char(): return msvcrt.getch().decode('utf-8', errors='ignore')
except ImportError:
    import tty, termios
    def get_char():
        fd = sys.stdin.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            tty.setraw(sys.stdin.fileno()); ch = sys.stdin.read(1)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        return ch

init(autoreset=True)

ANCHO = 80


def limpiar_pantalla():
    if sys.stdout.isatty():
        os.system('cls' if os.name == 'nt' else 'clear')


def mostrar_encabezado(titulo: str, ancho: int = ANCHO, color: str = Fore.WHITE, gestor=None):
    limpiar_pantalla()
    print(Fore.WHITE + Style.BRIGHT + "═" * ancho)
    print(Back.WHITE + Style.DIM + Fore.BLACK + " Gestión de Novedades del Personal (GNP) ".center(ancho, ' ') + Style.RESET_ALL)
    if gestor is not None and gestor.sesion is not None:
        identidad = gestor.sesion.identidad
        info_usuario = f"{identidad.email} / Rol: {identidad.role}"
        print(Back.WHITE + Fore.BLACK + Style.BRIGHT + f" {info_usuario} ".center(ancho, ' ') + Style.RESET_ALL)
    else:
        print(Back.WHITE + Fore.BLACK + Style.BRIGHT + " Talento Humano y Salud Ocupacional ".center(ancho, ' ') + Style.RESET_ALL)
    print(Fore.WHITE + Style.BRIGHT + "═" * ancho + Style.RESET_ALL)
    print("\n" + color + Style.BRIGHT + f" {titulo.upper()} ".center(ancho, ' ') + Style.RESET_ALL)
    print(color + "─" * ancho + Style.RESET_ALL)


def mostrar_menu(opciones: List[str]):
    for i, opcion in enumerate(opciones, 1):
        print(Fore.YELLOW + f"{i}." + Style.RESET_ALL + f" {opcion}")
    print(Style.BRIGHT + Fore.WHITE + "═" * ANCHO + Style.RESET_ALL)


def pausar_pantalla():
    input(Fore.CYAN + "\nPresione Enter para continuar..." + Style.RESET_ALL)


def solicitar_input(prompt: str, default: str = "") -> str:
    return input(prompt + Style.RESET_ALL).strip() or default


def solicitar_contrasena_con_asteriscos(prompt: str) -> str:
    print(prompt, end="", flush=True); password = ""
    while True:
        char = get_char()
        if char in ('\r', '\n'): print(); break
        elif char in ('\b', '\x7f'):
            if len(password) > 0: print("\b \b", end="", flush=True); password = password[:-1]
        elif char == '\x03': raise KeyboardInterrupt
        else: password += char; print("*", end="", flush=True)
    return password


def confirmar(prompt: str) -> bool:
    return solicitar_input(Fore.YELLOW + f"{prompt} (s/n): ").lower() in ("s", "si", "sí")


# --- Notificaciones ---
def notificar_exito(mensaje: str):
    print(Fore.GREEN + f"✅ {mensaje}" + Style.RESET_ALL)


def notificar_error(mensaje: str):
    print(Fore.RED + f"❌ {mensaje}" + Style.RESET_ALL)


def notificar_aviso(mensaje: str):
    print(Fore.YELLOW + f"⚠️  {mensaje}" + Style.RESET_ALL)


def mostrar_acceso_denegado(modulo=None, accion=None):
    print("\n" + Fore.RED + Style.BRIGHT + "═" * ANCHO)
    print(Fore.RED + Style.BRIGHT + " ACCESO DENEGADO ".center(ANCHO, ' '))
    if modulo is not None:
        detalle = f"Su usuario no puede '{getattr(accion, 'value', accion)}' en el módulo '{getattr(modulo, 'value', modulo)}'."
        print(Fore.RED + detalle.center(ANCHO, ' '))
    print(Fore.RED + Style.BRIGHT + "═" * ANCHO + Style.RESET_ALL)


# --- Formularios y tablas ---
def mostrar_formulario_interactivo(titulo: str, campos: List[str], datos: Dict, indice_actual: int, gestor=None):
    mostrar_encabezado(titulo, color=Fore.BLUE, gestor=gestor)
    print(Fore.CYAN + "💡 Complete los siguientes campos. Puede presionar Ctrl+C para cancelar." + Style.RESET_ALL)
    for i, campo in enumerate(campos):
        indicador = Fore.YELLOW + " -> " if i == indice_actual else "    "
        valor_mostrado = f"{Fore.GREEN}{datos.get(campo, '')}{Style.RESET_ALL}" if datos.get(campo) else ""
        print(f"{indicador}{campo.ljust(30)}: {valor_mostrado}")
    print(Fore.WHITE + "─" * ANCHO + Style.RESET_ALL)


def _recortar(valor, ancho: int) -> str:
    texto = "" if valor is None else str(valor)
    return texto if len(texto) <= ancho else texto[:ancho - 3] + "..."


def mostrar_tabla(columnas: Sequence[Tuple[str, str, int]], filas: List[Dict], vacio: str = "No hay registros."):
    """columnas: (clave, encabezado, ancho)."""
    total = sum(ancho + 1 for _, _, ancho in columnas) + 4
    encabezado = " ".join(f"{titulo:<{ancho}}" for _, titulo, ancho in columnas)
    print(f"{Fore.CYAN}{'#':<4}{encabezado}{Style.RESET_ALL}")
    print(Fore.CYAN + "-" * total + Style.RESET_ALL)
    if not filas:
        print(Fore.YELLOW + vacio)
    else:
        for i, fila in enumerate(filas, 1):
            celdas = " ".join(f"{_recortar(fila.get(clave), ancho):<{ancho}}" for clave, _, ancho in columnas)
            print(f"{i:<4}{celdas}")
    print(Fore.CYAN + "-" * total + Style.RESET_ALL)


def mostrar_panel_info(titulo: str, info_dict: Dict):
    print(Fore.CYAN + f"--- {titulo} ---" + Style.RESET_ALL)
    for clave, valor in info_dict.items():
        print(f"  {clave.ljust(25)}: {valor}")
    print(Fore.CYAN + "-" * (len(titulo) + 8) + Style.RESET_ALL)


def mostrar_log_sistema(logs: List[Dict]):
    print(f"{Fore.CYAN}{'FECHA':<22} {'USUARIO':<25} {'ACCIÓN':<22} {'DETALLES'}{Style.RESET_ALL}")
    print(Fore.CYAN + "-" * 90 + Style.RESET_ALL)
    if not logs:
        print(Fore.YELLOW + "No hay registros de actividad en el sistema.")
    else:
        for log in logs:
            print(f"{log['fecha']:<22} {_recortar(log['usuario'], 25):<25} {_recortar(log['accion'], 22):<22} {_recortar(log['detalles'], 40)}")
    print(Fore.CYAN + "-" * 90 + Style.RESET_ALL)


# --- Gráficos de texto ---
def mostrar_grafico_barras(titulo: str, datos: Dict[str, int], ancho: int = 40):
    print(Fore.CYAN + f"--- {titulo} ---" + Style.RESET_ALL)
    maximo = max(datos.values(), default=0)
    for etiqueta, valor in datos.items():
        largo = round(valor / maximo * ancho) if maximo else 0
        print(f"  {etiqueta:<15} {Fore.RED}{'█' * largo}{Style.RESET_ALL} {valor}")


def mostrar_grafico_distribucion(titulo: str, datos: Dict[str, int], ancho: int = 40):
    print(Fore.CYAN + f"--- {titulo} ---" + Style.RESET_ALL)
    total = sum(datos.values())
    if not total:
        print(Fore.YELLOW + "  Sin registros para mostrar.")
        return
    colores = [Fore.RED, Fore.YELLOW, Fore.MAGENTA, Fore.BLUE]
    barra = ""
    for i, (etiqueta, valor) in enumerate(datos.items()):
        barra += colores[i % len(colores)] + "■" * round(valor / total * ancho)
    print("  " + barra + Style.RESET_ALL)
    for i, (etiqueta, valor) in enumerate(datos.items()):
        print(f"  {colores[i % len(colores)]}■{Style.RESET_ALL} {etiqueta:<15} {valor / total:>6.1%}")


def seleccionar_opcion(titulo: str, opciones: List[str], actual: Optional[str] = None) -> Optional[str]:
    """Muestra una lista numerada y devuelve el valor elegido (o el actual con Enter)."""
    print(Fore.CYAN + f"{titulo}:")
    for i, opcion in enumerate(opciones, 1):
        print(f"  {i}. {opcion}")
    entrada = solicitar_input(Fore.YELLOW + "Seleccione un número" + (f" (Enter = {actual})" if actual else "") + ": ")
    if not entrada:
        return actual
    try:
        indice = int(entrada) - 1
    except ValueError:
        return None
    return opciones[indice] if 0 <= indice < len(opciones) else None
