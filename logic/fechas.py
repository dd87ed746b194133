from __future__ import annotations
import re
from datetime import date, datetime
from typing import Optional, Union


class FechaInvalida(ValueError):
    """Fecha que no se puede interpretar; no se opera con ella."""


# D/M/YYYY, D-M-YYYY, D.M.YYYY
_DMY = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})$")
# YYYY-M-D, YYYY/M/D, YYYY.M.D
_YMD = re.compile(r"^(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})$")


def reconocer_fecha(texto: str) -> Optional[date]:
    """Devuelve la fecha si el texto tiene un formato de extracto conocido, si no None."""
    limpio = (texto or "").strip()
    m = _DMY.match(limpio)
    if m:
        dia, mes, anio = int(m.group(1)), int(m.group(2)), int(m.group(3))
    else:
        m = _YMD.match(limpio)
        if not m:
            return None
        anio, mes, dia = int(m.group(1)), int(m.group(2)), int(m.group(3))
    try:
        return date(anio, mes, dia)
    except ValueError:
        return None


def a_fecha(valor: Union[date, datetime, str, None]) -> date:
    """Convierte a `date` o lanza FechaInvalida.

    Acepta date/datetime, ISO (con o sin hora) y los formatos de extracto.
    """
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    if isinstance(valor, str):
        reconocida = reconocer_fecha(valor)
        if reconocida is not None:
            return reconocida
        try:
            return datetime.fromisoformat(valor.strip()).date()
        except ValueError:
            pass
    raise FechaInvalida(f"Fecha inválida: {valor!r}")


def dias_entre(a, b) -> int:
    """Diferencia absoluta en días calendario."""
    return abs((a_fecha(a) - a_fecha(b)).days)
