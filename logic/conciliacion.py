from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional
import re
import unicodedata

from infra.config import Config, ConciliacionConfig, config_default
from infra.logger import get_logger
from logic.fechas import FechaInvalida, dias_entre
from logic.modelos import (
    CENTIMO,
    CERO,
    DocumentoComercial,
    MovimientoBancario,
    ParConciliado,
    ResultadoConciliacion,
)


log = get_logger("conciliacion")


def _dec(valor) -> Decimal:
    return valor if isinstance(valor, Decimal) else Decimal(str(valor))


@dataclass(frozen=True)
class Parametros:
    umbral_confianza: Decimal = Decimal("0.40")
    peso_importe: Decimal = Decimal("0.50")
    peso_fecha: Decimal = Decimal("0.30")
    peso_descripcion: Decimal = Decimal("0.20")

    @classmethod
    def desde_config(cls, cfg: Optional[ConciliacionConfig] = None) -> "Parametros":
        cfg = cfg or config_default().conciliacion
        return cls(
            umbral_confianza=_dec(cfg.umbral_confianza),
            peso_importe=_dec(cfg.peso_importe),
            peso_fecha=_dec(cfg.peso_fecha),
            peso_descripcion=_dec(cfg.peso_descripcion),
        )


@dataclass(frozen=True)
class Puntaje:
    importe: Decimal
    fecha: Decimal
    descripcion: Decimal
    confianza: Decimal


@dataclass(frozen=True)
class Candidato:
    indice_movimiento: int
    indice_documento: int
    documento_id: str
    confianza: Decimal
    movimiento: MovimientoBancario


# ==========================================================
# Puntajes parciales
# ==========================================================
def normalizar_texto(texto: str) -> str:
    """Minúsculas, sin tildes, solo alfanumérico y espacios simples."""
    t = unicodedata.normalize("NFD", (texto or "").lower())
    t = "".join(ch for ch in t if not unicodedata.combining(ch))
    t = re.sub(r"[^a-z0-9\s]", "", t)
    return re.sub(r"\s+", " ", t).strip()


def puntaje_importe(monto_movimiento: Decimal, total_documento: Decimal) -> Decimal:
    """1.0 exacto, 0.98 dentro de un céntimo, 0.95 dentro del 0.1 %, si no 0."""
    monto_movimiento, total_documento = _dec(monto_movimiento), _dec(total_documento)
    if monto_movimiento == total_documento:
        return Decimal("1.0")

    diferencia = abs(monto_movimiento - total_documento)
    if diferencia <= CENTIMO:
        return Decimal("0.98")

    if diferencia / max(total_documento, CENTIMO) <= Decimal("0.001"):
        return Decimal("0.95")

    return CERO


_PUNTAJE_DIAS = {
    0: Decimal("1.0"),
    1: Decimal("0.9"),
    2: Decimal("0.75"),
    3: Decimal("0.6"),
}


def puntaje_fecha(fecha_movimiento, fecha_documento) -> Decimal:
    """Cercanía en días (sin importar el sentido); lanza FechaInvalida si no hay fecha."""
    return _PUNTAJE_DIAS.get(dias_entre(fecha_movimiento, fecha_documento), CERO)


def puntaje_descripcion(descripcion_movimiento: str, nombre_tercero: str) -> Decimal:
    desc = normalizar_texto(descripcion_movimiento)
    nombre = normalizar_texto(nombre_tercero)
    if not desc or not nombre:
        return CERO

    if nombre in desc or desc in nombre:
        return Decimal("0.8")

    palabras = [p for p in nombre.split(" ") if len(p) > 2]
    if not palabras:
        return CERO

    coincidencias = sum(1 for p in palabras if p in desc)
    proporcion = Decimal(coincidencias) / Decimal(len(palabras))

    if proporcion >= Decimal("0.6"):
        return Decimal("0.6")
    if proporcion >= Decimal("0.3"):
        return Decimal("0.3")
    return CERO


def calcular_confianza(
    p_importe: Decimal,
    p_fecha: Decimal,
    p_descripcion: Decimal,
    params: Parametros = Parametros(),
) -> Decimal:
    if p_importe == 0:
        return CERO
    ponderado = (
        p_importe * params.peso_importe
        + p_fecha * params.peso_fecha
        + p_descripcion * params.peso_descripcion
    )
    return ponderado.quantize(CENTIMO, rounding=ROUND_HALF_UP)


def desglose_puntaje(
    mov: MovimientoBancario,
    doc: DocumentoComercial,
    params: Parametros = Parametros(),
) -> Puntaje:
    """Los tres puntajes y la confianza compuesta de un par movimiento/documento."""
    p_imp = puntaje_importe(mov.monto, doc.total)
    if p_imp == 0:
        return Puntaje(CERO, CERO, CERO, CERO)
    p_fec = puntaje_fecha(mov.fecha, doc.fecha_emision)
    p_desc = puntaje_descripcion(mov.descripcion, doc.nombre_tercero)
    return Puntaje(p_imp, p_fec, p_desc, calcular_confianza(p_imp, p_fec, p_desc, params))


# ==========================================================
# Conciliación
# ==========================================================
def generar_candidatos(
    movimientos: list[MovimientoBancario],
    documentos: Iterable[DocumentoComercial],
    params: Parametros = Parametros(),
) -> list[Candidato]:
    """Pares con importe compatible y confianza >= umbral, en orden de descubrimiento.

    Un movimiento con fecha ilegible no genera candidatos y queda pendiente.
    """
    documentos = list(documentos)
    out: list[Candidato] = []
    for i, mov in enumerate(movimientos):
        propios: list[Candidato] = []
        try:
            for j, doc in enumerate(documentos):
                puntaje = desglose_puntaje(mov, doc, params)
                if puntaje.importe == 0:
                    continue
                if puntaje.confianza >= params.umbral_confianza:
                    propios.append(Candidato(i, j, doc.id, puntaje.confianza, mov))
        except FechaInvalida as e:
            log.warning("Movimiento %d queda pendiente: %s", i + 1, e)
            continue
        out.extend(propios)
    return out


def seleccionar_pares(candidatos: list[Candidato]) -> list[Candidato]:
    """Greedy global: de mayor a menor confianza, cada movimiento y documento se usa una vez.

    El orden es estable, así que los empates respetan el orden de descubrimiento.
    """
    usados_mov: set[int] = set()
    usados_doc: set[int] = set()
    elegidos: list[Candidato] = []
    for c in sorted(candidatos, key=lambda c: c.confianza, reverse=True):
        if c.indice_movimiento in usados_mov or c.indice_documento in usados_doc:
            continue
        elegidos.append(c)
        usados_mov.add(c.indice_movimiento)
        usados_doc.add(c.indice_documento)
    return elegidos


def conciliar(
    movimientos: list[MovimientoBancario],
    documentos: list[DocumentoComercial],
    params: Parametros = Parametros(),
) -> ResultadoConciliacion:
    elegidos = seleccionar_pares(generar_candidatos(movimientos, documentos, params))

    usados_mov = {c.indice_movimiento for c in elegidos}
    usados_doc = {c.indice_documento for c in elegidos}

    resultado = ResultadoConciliacion(
        conciliados=[ParConciliado(c.movimiento, c.documento_id, c.confianza) for c in elegidos],
        pendientes_banco=[m for i, m in enumerate(movimientos) if i not in usados_mov],
        pendientes_sistema=[d for j, d in enumerate(documentos) if j not in usados_doc],
    )
    log.info(
        "Conciliación: %d pares, %d pendientes banco, %d pendientes sistema",
        len(resultado.conciliados),
        len(resultado.pendientes_banco),
        len(resultado.pendientes_sistema),
    )
    return resultado


def nivel_confianza(confianza: Decimal, cfg: Optional[Config] = None) -> str:
    """'alta', 'media' o 'baja' según los umbrales de config.yaml."""
    conc = (cfg or config_default()).conciliacion
    confianza = _dec(confianza)
    if confianza >= _dec(conc.nivel_alta):
        return "alta"
    if confianza >= _dec(conc.nivel_media):
        return "media"
    return "baja"
