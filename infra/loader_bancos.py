import io
import re
import unicodedata
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Union

import pandas as pd

from infra.config import config_default
from infra.logger import get_logger
from logic.lectura import parsear_extracto, parsear_monto
from logic.modelos import DocumentoComercial, MovimientoBancario, redondear


log = get_logger("loader")

Fuente = Union[str, Path, bytes, TextIO, BinaryIO]


# ==============================
# Bancos soportados
# ==============================
BANCOS = {
    "bcp": {
        "nombre": "Banco de Crédito del Perú (BCP)",
        "cols": ["Fecha", "Descripcion", "Referencia", "Cargo", "Abono", "Saldo"],
    },
    "interbank": {
        "nombre": "Interbank",
        "cols": ["Fecha", "Operacion", "Descripcion", "Monto", "Saldo"],
    },
    "bbva": {
        "nombre": "BBVA Continental",
        "cols": ["Fecha", "Hora", "Descripcion", "Referencia", "Cargo", "Abono", "Saldo"],
    },
    "generico": {
        "nombre": "Otro banco (detección por cabecera)",
        "cols": [],
    },
}


# ==============================
# Lectura de texto
# ==============================
def _demojibake_text(s: str) -> str:
    """Corrige UTF-8 leído como latin1/cp1252 (mojibake) si el resultado tiene menos artefactos."""
    candidates = [s]
    for src in ("latin1", "cp1252"):
        try:
            candidates.append(s.encode(src).decode("utf-8"))
        except (UnicodeEncodeError, UnicodeDecodeError):
            continue

    def score(text: str) -> int:
        return sum(text.count(b) for b in ("Ã", "Â", "ï¿½", "�"))

    return min(candidates, key=score)


def _leer_bytes(fuente: Fuente) -> Union[bytes, str]:
    if isinstance(fuente, (bytes, bytearray)):
        return bytes(fuente)
    if isinstance(fuente, (str, Path)):
        return Path(fuente).read_bytes()
    if hasattr(fuente, "read"):
        # UploadedFile de Streamlit y BytesIO son binarios y seekables
        if hasattr(fuente, "seek"):
            fuente.seek(0)
        return fuente.read()
    raise TypeError("Objeto de archivo no soportado para lectura de extracto")


def leer_texto(fuente: Fuente, encodings: Optional[list[str]] = None) -> str:
    """Devuelve el contenido como texto probando los encodings de config.yaml."""
    contenido = _leer_bytes(fuente)
    if isinstance(contenido, str):
        texto = contenido
    else:
        encodings = encodings or config_default().lectura.csv_encodings
        texto = None
        for enc in encodings:
            try:
                texto = contenido.decode(enc)
                break
            except UnicodeDecodeError:
                continue
        if texto is None:
            raise ValueError(f"No se pudo decodificar el extracto con los encodings {encodings}")
    return _demojibake_text(texto).lstrip("\ufeff")


def cargar_extracto(fuente: Fuente, banco: Optional[str] = None) -> list[MovimientoBancario]:
    """Lee un extracto (ruta, bytes o archivo subido) y lo normaliza a movimientos."""
    banco = None if banco == "generico" else banco
    movimientos = parsear_extracto(leer_texto(fuente), banco)
    log.info("Extracto %s: %d movimientos", banco or "generico", len(movimientos))
    return movimientos


# ==============================
# Documentos del sistema
# ==============================
def _keyize(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", str(text).replace("\ufeff", ""))
    t = normalized.encode("ascii", "ignore").decode("ascii").lower()
    t = re.sub(r"[^0-9a-z]+", " ", t)
    return re.sub(r"\s+", " ", t).strip()


# Orden de asignación: una columna ya asignada no se reutiliza
# ("subtotal" antes que "total", "vencimiento" antes que "fecha").
COLUMNAS_DOCUMENTO: dict[str, list[str]] = {
    "id": ["id", "documento id", "codigo"],
    "tipo_operacion": ["tipo operacion", "operacion"],
    "tipo": ["tipo documento", "tipo doc", "tipo"],
    "serie": ["serie"],
    "numero": ["numero", "nro", "correlativo"],
    "nombre_tercero": ["nombre tercero", "razon social", "tercero", "cliente", "proveedor", "nombre"],
    "fecha_vencimiento": ["fecha vencimiento", "vencimiento"],
    "fecha_emision": ["fecha emision", "emision", "fecha"],
    "subtotal": ["subtotal", "base imponible", "base"],
    "igv": ["igv", "impuesto"],
    "total": ["total", "importe", "monto"],
    "estado_pago": ["estado pago", "estado"],
}

OBLIGATORIAS = ("id", "fecha_emision", "total")

ALIAS_TIPO_DOC = {
    "nota de credito": "nota_credito",
    "nc": "nota_credito",
    "nota de debito": "nota_debito",
    "nd": "nota_debito",
    "recibo por honorarios": "recibo_honorarios",
    "rh": "recibo_honorarios",
}


def detectar_columnas_documentos(df: pd.DataFrame) -> dict[str, Optional[str]]:
    cols = list(df.columns)
    claves = {c: _keyize(c) for c in cols}
    usadas: set = set()
    out: dict[str, Optional[str]] = {}

    for campo, keywords in COLUMNAS_DOCUMENTO.items():
        elegido = None
        # primero coincidencia exacta, después por contenido
        for exacto in (True, False):
            for kw in keywords:
                for c in cols:
                    if c in usadas:
                        continue
                    k = claves[c]
                    if (k == kw) if exacto else (kw in k):
                        elegido = c
                        break
                if elegido is not None:
                    break
            if elegido is not None:
                break
        out[campo] = elegido
        if elegido is not None:
            usadas.add(elegido)
    return out


def _texto(valor) -> str:
    if valor is None or (not isinstance(valor, str) and pd.isna(valor)):
        return ""
    if isinstance(valor, float) and valor.is_integer():
        return str(int(valor))
    return str(valor).strip()


def _monto(valor) -> Decimal:
    return redondear(parsear_monto(_texto(valor)))


def _fecha(valor) -> Optional[date]:
    if valor is None or (not isinstance(valor, str) and pd.isna(valor)):
        return None
    ts = pd.to_datetime(valor, dayfirst=isinstance(valor, str) and not re.match(r"^\d{4}", valor), errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _tipo_documento(valor) -> str:
    k = _keyize(_texto(valor))
    if not k:
        return "factura"
    return ALIAS_TIPO_DOC.get(k, k.replace(" ", "_"))


def cargar_documentos(df: pd.DataFrame) -> list[DocumentoComercial]:
    """Convierte una tabla de comprobantes pendientes en DocumentoComercial.

    Filas sin id, sin fecha de emisión legible o con total 0 se omiten.
    """
    mapeo = detectar_columnas_documentos(df)
    faltantes = [c for c in OBLIGATORIAS if mapeo[c] is None]
    if faltantes:
        raise ValueError(f"Faltan columnas obligatorias en documentos: {faltantes}. Columnas: {list(df.columns)}")

    def get(row, campo):
        col = mapeo.get(campo)
        return row[col] if col is not None else None

    out: list[DocumentoComercial] = []
    for _, row in df.iterrows():
        doc_id = _texto(get(row, "id"))
        emision = _fecha(get(row, "fecha_emision"))
        total = _monto(get(row, "total"))
        if not doc_id or emision is None or total == 0:
            continue

        igv = _monto(get(row, "igv")) if mapeo["igv"] else Decimal("0.00")
        subtotal = _monto(get(row, "subtotal")) if mapeo["subtotal"] else total - igv
        operacion = _keyize(_texto(get(row, "tipo_operacion"))) or "venta"

        out.append(DocumentoComercial(
            id=doc_id,
            tipo=_tipo_documento(get(row, "tipo")),
            tipo_operacion="compra" if operacion.startswith("compra") else "venta",
            serie=_texto(get(row, "serie")),
            numero=_texto(get(row, "numero")),
            nombre_tercero=_texto(get(row, "nombre_tercero")),
            fecha_emision=emision,
            subtotal=subtotal,
            igv=igv,
            total=total,
            estado_pago=_texto(get(row, "estado_pago")) or "pendiente",
            fecha_vencimiento=_fecha(get(row, "fecha_vencimiento")),
        ))
    log.info("Documentos cargados: %d de %d filas", len(out), len(df))
    return out


def leer_tabla(fuente, nombre: str = "", hoja: Union[str, int] = 0) -> pd.DataFrame:
    """CSV (separador autodetectado) o Excel (openpyxl) a DataFrame de texto."""
    if nombre.lower().endswith((".xlsx", ".xlsm")):
        if hasattr(fuente, "seek"):
            fuente.seek(0)
        return pd.read_excel(fuente, sheet_name=hoja, engine="openpyxl", dtype=str)
    texto = leer_texto(fuente)
    return pd.read_csv(io.StringIO(texto), sep=None, engine="python", dtype=str, keep_default_na=False)
