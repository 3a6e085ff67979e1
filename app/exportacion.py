# app/exportacion.py
import logging
import os
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

logger = logging.getLogger("novedades.exportacion")

BORDE = Border(left=Side(style='thin'), right=Side(style='thin'), top=Side(style='thin'), bottom=Side(style='thin'))


def exportar_excel(directorio: str, nombre_base: str, titulo_hoja: str,
                   columnas: Sequence[Tuple[str, str]], filas: List[Dict]) -> str:
    """
    Escribe un libro .xlsx con una hoja y devuelve la ruta del archivo.
    columnas: (clave, encabezado).
    """
    wb = Workbook()
    ws = wb.active
    ws.title = titulo_hoja[:31]

    header_fill = PatternFill(start_color="C00000", end_color="C00000", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)

    for col_num, (_, encabezado) in enumerate(columnas, 1):
        celda = ws.cell(row=1, column=col_num, value=encabezado)
        celda.fill = header_fill
        celda.font = header_font
        celda.alignment = Alignment(horizontal='center')
        celda.border = BORDE

    anchos = [len(encabezado) for _, encabezado in columnas]
    for row_num, fila in enumerate(filas, 2):
        for col_num, (clave, _) in enumerate(columnas, 1):
            valor = fila.get(clave)
            if isinstance(valor, bool):
                valor = "Sí" if valor else "No"
            cell = ws.cell(row=row_num, column=col_num, value=valor)
            cell.border = BORDE
            anchos[col_num - 1] = max(anchos[col_num - 1], len(str(valor or "")))

    for col_num, ancho in enumerate(anchos, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = min(ancho + 4, 60)
    ws.freeze_panes = "A2"

    if not os.path.exists(directorio):
        os.makedirs(directorio)
    ruta = os.path.join(directorio, f"{nombre_base}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx")
    wb.save(ruta)
    logger.info("Exportados %d registros a %s", len(filas), ruta)
    return ruta
