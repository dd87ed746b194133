from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from infra.logger import get_logger
from logic.fechas import reconocer_fecha
from logic.modelos import CERO, MovimientoBancario


log = get_logger("lectura")


# ==============================
# Utilidades de texto
# ==============================
def obtener_lineas(texto: str) -> list[str]:
    """Normaliza fines de línea y descarta líneas en blanco."""
    texto = (texto or "").replace("\r\n", "\n").replace("\r", "\n")
    return [l.strip() for l in texto.split("\n") if l.strip()]


def detectar_separador(cabecera: str) -> str:
    """El separador más frecuente en la cabecera; empates: tab > ; > ,"""
    tabs = cabecera.count("\t")
    puntoycoma = cabecera.count(";")
    comas = cabecera.count(",")
    if tabs >= puntoycoma and tabs >= comas:
        return "\t"
    if puntoycoma >= comas:
        return ";"
    return ","


def dividir_linea(linea: str, separador: str) -> list[str]:
    """Divide respetando comillas dobles: un separador entre comillas no corta el campo."""
    campos: list[str] = []
    actual: list[str] = []
    entre_comillas = False
    for ch in linea:
        if ch == '"':
            entre_comillas = not entre_comillas
        elif ch == separador and not entre_comillas:
            campos.append("".join(actual))
            actual = []
        else:
            actual.append(ch)
    campos.append("".join(actual))
    return campos


def limpiar_campo(valor: str) -> str:
    return re.sub(r"""^["']|["']$""", "", valor or "").strip()


def _strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", str(text))
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def parsear_fecha(texto: str) -> Union[date, str]:
    """DD/MM/YYYY (/, -, .) o YYYY-MM-DD; otro formato se devuelve tal cual."""
    reconocida = reconocer_fecha(texto)
    return reconocida if reconocida is not None else (texto or "").strip()


_DECIMAL_COMA = re.compile(r",(\d{2})$")
_SIMBOLOS = re.compile(r"""S/\.?|['"$S/\s]""")
_NUMERO = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")


def parsear_monto(texto: str) -> Decimal:
    """Convierte un importe de extracto a Decimal; lo que no se entiende vale 0.

    - quita moneda (`S/`, `$`), comillas y espacios (`S/ 1,500.00`)
    - una `,NN` final es la coma decimal (`1.500,00`)
    - el resto de comas son separadores de miles
    - cualquier otro texto (`(250.50)`, `Ref 4512`) no es un importe
    """
    limpio = _SIMBOLOS.sub("", texto or "")
    if _DECIMAL_COMA.search(limpio):
        limpio = limpio.replace(".", "")
        limpio = _DECIMAL_COMA.sub(r".\1", limpio)
    limpio = limpio.replace(",", "")
    if not _NUMERO.fullmatch(limpio):
        return CERO
    return Decimal(limpio)


def _campo(campos: list[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(campos):
        return ""
    return campos[idx]


def _saldo(campos: list[str], idx: Optional[int]) -> Optional[Decimal]:
    valor = _campo(campos, idx)
    if not valor:
        return None
    return parsear_monto(valor)


# ==============================
# Formatos de extracto
# ==============================
@dataclass(frozen=True)
class FormatoCargoAbono:
    """Cargo y abono en columnas separadas; una fila puede dar 0, 1 o 2 movimientos."""
    nombre: str
    fecha: int
    descripcion: Optional[int]
    referencia: Optional[int]
    cargo: int
    abono: int
    saldo: Optional[int]
    minimo_campos: int

    def movimientos(self, campos: list[str]) -> list[MovimientoBancario]:
        fecha = parsear_fecha(_campo(campos, self.fecha))
        descripcion = _campo(campos, self.descripcion)
        referencia = _campo(campos, self.referencia)
        cargo = parsear_monto(_campo(campos, self.cargo))
        abono = parsear_monto(_campo(campos, self.abono))
        saldo = _saldo(campos, self.saldo)

        out: list[MovimientoBancario] = []
        if cargo > 0:
            out.append(MovimientoBancario(fecha, descripcion, referencia, cargo, "cargo", saldo))
        if abono > 0:
            out.append(MovimientoBancario(fecha, descripcion, referencia, abono, "abono", saldo))
        return out


@dataclass(frozen=True)
class FormatoMontoConSigno:
    """Una sola columna de monto: negativo = cargo, positivo = abono."""
    nombre: str
    fecha: int
    descripcion: Optional[int]
    referencia: Optional[int]
    monto: int
    saldo: Optional[int]
    minimo_campos: int

    def movimientos(self, campos: list[str]) -> list[MovimientoBancario]:
        monto = parsear_monto(_campo(campos, self.monto))
        if monto == 0:
            return []
        return [MovimientoBancario(
            fecha=parsear_fecha(_campo(campos, self.fecha)),
            descripcion=_campo(campos, self.descripcion),
            referencia=_campo(campos, self.referencia),
            monto=abs(monto),
            tipo="cargo" if monto < 0 else "abono",
            saldo=_saldo(campos, self.saldo),
        )]


@dataclass(frozen=True)
class FormatoGenerico:
    """Se resuelve contra la cabecera del archivo (ver `detectar_columnas`)."""
    nombre: str = "generico"
    minimo_campos: int = 3


Formato = Union[FormatoCargoAbono, FormatoMontoConSigno, FormatoGenerico]


FORMATOS_BANCO: dict[str, Formato] = {
    # Fecha;Descripcion;Referencia;Cargo;Abono;Saldo
    "bcp": FormatoCargoAbono(
        nombre="bcp", fecha=0, descripcion=1, referencia=2,
        cargo=3, abono=4, saldo=5, minimo_campos=5,
    ),
    # Fecha;Operacion;Descripcion;Monto;Saldo
    "interbank": FormatoMontoConSigno(
        nombre="interbank", fecha=0, referencia=1, descripcion=2,
        monto=3, saldo=4, minimo_campos=4,
    ),
    # Fecha;Hora;Descripcion;Referencia;Cargo;Abono;Saldo
    "bbva": FormatoCargoAbono(
        nombre="bbva", fecha=0, descripcion=2, referencia=3,
        cargo=4, abono=5, saldo=6, minimo_campos=6,
    ),
}

FORMATO_GENERICO = FormatoGenerico()

ALIAS_BANCO = {
    "bcp": "bcp",
    "banco de credito": "bcp",
    "banco de credito del peru": "bcp",
    "interbank": "interbank",
    "ibk": "interbank",
    "bbva": "bbva",
    "bbva continental": "bbva",
    "bbva peru": "bbva",
}


def formato_para_banco(banco: Optional[str]) -> Formato:
    """Formato dedicado del banco; sin banco o banco desconocido -> genérico."""
    if not banco:
        return FORMATO_GENERICO
    clave = re.sub(r"\s+", " ", _strip_accents(banco).lower()).strip()
    clave = ALIAS_BANCO.get(clave, clave)
    return FORMATOS_BANCO.get(clave, FORMATO_GENERICO)


# ==============================
# Detección de columnas por cabecera
# ==============================
PALABRAS_CLAVE: dict[str, list[str]] = {
    "fecha": [r"fecha", r"date", r"f\.\s*oper"],
    "descripcion": [r"descripcion", r"concepto", r"detalle", r"description", r"glosa"],
    "referencia": [r"referencia", r"ref", r"operacion", r"numero", r"nro"],
    "cargo": [r"cargo", r"debito", r"debit", r"retiro", r"salida"],
    "abono": [r"abono", r"credito", r"credit", r"deposito", r"entrada"],
    "monto": [r"monto", r"importe", r"amount", r"valor"],
    "saldo": [r"saldo", r"balance"],
}

# Campos de importe: nunca se asignan a la columna ya elegida como fecha ("Fecha valor")
_CAMPOS_IMPORTE = {"cargo", "abono", "monto", "saldo"}


@dataclass(frozen=True)
class MapeoColumnas:
    fecha: Optional[int] = None
    descripcion: Optional[int] = None
    referencia: Optional[int] = None
    cargo: Optional[int] = None
    abono: Optional[int] = None
    monto: Optional[int] = None
    saldo: Optional[int] = None

    def resolver(self) -> Optional[Formato]:
        """Traduce el mapeo a un formato posicional; None si no hay fecha o importe."""
        if self.fecha is None:
            return None
        if self.cargo is not None and self.abono is not None:
            return FormatoCargoAbono(
                nombre="generico", fecha=self.fecha, descripcion=self.descripcion,
                referencia=self.referencia, cargo=self.cargo, abono=self.abono,
                saldo=self.saldo, minimo_campos=FORMATO_GENERICO.minimo_campos,
            )
        if self.monto is not None:
            return FormatoMontoConSigno(
                nombre="generico", fecha=self.fecha, descripcion=self.descripcion,
                referencia=self.referencia, monto=self.monto,
                saldo=self.saldo, minimo_campos=FORMATO_GENERICO.minimo_campos,
            )
        return None


def _normalizar_cabecera(valor: str) -> str:
    return _strip_accents(limpiar_campo(valor)).lower()


def detectar_columnas(cabeceras: list[str]) -> MapeoColumnas:
    """Busca, para cada campo, la primera columna cuyo nombre contiene alguna palabra clave."""
    normalizadas = [_normalizar_cabecera(c) for c in cabeceras]
    encontrados: dict[str, Optional[int]] = {}
    for campo, patrones in PALABRAS_CLAVE.items():
        regex = re.compile("|".join(patrones), re.IGNORECASE)
        idx = None
        for i, nombre in enumerate(normalizadas):
            if campo in _CAMPOS_IMPORTE and i == encontrados.get("fecha"):
                continue
            if regex.search(nombre):
                idx = i
                break
        encontrados[campo] = idx
    return MapeoColumnas(**encontrados)


# ==============================
# Punto de entrada
# ==============================
def parsear_extracto(texto: str, banco: Optional[str] = None) -> list[MovimientoBancario]:
    """Convierte el texto de un extracto en movimientos, en el orden del archivo.

    Filas mal formadas o con monto 0 se omiten; menos de 2 líneas -> [].
    """
    lineas = obtener_lineas(texto)
    if len(lineas) < 2:
        return []

    separador = detectar_separador(lineas[0])
    formato = formato_para_banco(banco)

    if isinstance(formato, FormatoGenerico):
        cabeceras = dividir_linea(lineas[0], separador)
        mapeo = detectar_columnas(cabeceras)
        resuelto = mapeo.resolver()
        if resuelto is None:
            log.warning("Cabecera sin columnas de fecha o importe reconocibles: %s", cabeceras)
            return []
        formato = resuelto

    log.debug("Formato %s, separador %r, %d filas", formato.nombre, separador, len(lineas) - 1)

    out: list[MovimientoBancario] = []
    for nro, linea in enumerate(lineas[1:], start=2):
        campos = [limpiar_campo(c) for c in dividir_linea(linea, separador)]
        if len(campos) < formato.minimo_campos:
            log.debug("Línea %d omitida: %d campos (mínimo %d)", nro, len(campos), formato.minimo_campos)
            continue
        out.extend(formato.movimientos(campos))
    return out
