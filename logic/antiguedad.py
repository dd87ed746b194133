from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Literal, Optional

from infra.config import config_default
from logic.fechas import a_fecha
from logic.modelos import CERO, DocumentoComercial


Rango = Literal["0-30", "31-60", "61-90", "90+"]
RANGOS: tuple[Rango, ...] = ("0-30", "31-60", "61-90", "90+")


@dataclass(frozen=True)
class DocumentoAntiguedad:
    documento: DocumentoComercial
    vencimiento: date
    dias_vencido: int
    rango: Rango


@dataclass(frozen=True)
class ResumenAntiguedad:
    por_rango: dict[str, Decimal]
    total: Decimal
    cantidad_documentos: int


def asignar_rango(dias: int) -> Rango:
    if dias <= 30:
        return "0-30"
    if dias <= 60:
        return "31-60"
    if dias <= 90:
        return "61-90"
    return "90+"


def calcular_antiguedad(
    documentos: Iterable[DocumentoComercial],
    fecha_corte: Optional[date] = None,
    dias_vencimiento: Optional[int] = None,
) -> list[DocumentoAntiguedad]:
    """Días vencidos de cada documento de CxC/CxP, del más vencido al menos.

    Sin fecha de vencimiento se asume emisión + 30 días (config.yaml).
    Una fecha ilegible lanza FechaInvalida.
    """
    corte = fecha_corte or date.today()
    if dias_vencimiento is None:
        dias_vencimiento = config_default().contabilidad.dias_vencimiento_default

    out: list[DocumentoAntiguedad] = []
    for doc in documentos:
        emision = a_fecha(doc.fecha_emision)
        if doc.fecha_vencimiento:
            vencimiento = a_fecha(doc.fecha_vencimiento)
        else:
            vencimiento = emision + timedelta(days=dias_vencimiento)
        dias = max(0, (corte - vencimiento).days)
        out.append(DocumentoAntiguedad(doc, vencimiento, dias, asignar_rango(dias)))

    out.sort(key=lambda d: d.dias_vencido, reverse=True)
    return out


def resumen_antiguedad(items: Iterable[DocumentoAntiguedad]) -> ResumenAntiguedad:
    por_rango = {r: CERO for r in RANGOS}
    total = CERO
    cantidad = 0
    for item in items:
        por_rango[item.rango] += item.documento.total
        total += item.documento.total
        cantidad += 1
    return ResumenAntiguedad(por_rango=por_rango, total=total, cantidad_documentos=cantidad)
