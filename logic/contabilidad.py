"""
Motor de asientos contables (partida doble) a partir de comprobantes.

Reglas (PCGE):
- Factura/boleta/ticket de venta: Debe 1212 total, Haber 7011 subtotal + 4011 IGV
- Factura/boleta/ticket de compra: Debe 6011 subtotal + 4011 IGV, Haber 4212 total
- Recibo por honorarios: 7041 / 6329 en lugar de 7011 / 6011
- Nota de crédito: mismo asiento de la operación con Debe y Haber invertidos
- Nota de débito: mismo asiento y sentido que la operación
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Protocol

from infra.catalogo import catalogo_pcge
from infra.config import config_default
from infra.logger import get_logger
from logic.modelos import CERO, AsientoContable, DocumentoComercial, LineaAsiento, redondear


log = get_logger("contabilidad")


CUENTAS_DEFAULT = {
    "cuentas_por_cobrar": "1212",
    "ventas_mercaderias": "7011",
    "ingresos_servicios": "7041",
    "igv": "4011",
    "compras_mercaderias": "6011",
    "servicios_terceros": "6329",
    "cuentas_por_pagar": "4212",
}


def _cuentas() -> dict[str, str]:
    return {**CUENTAS_DEFAULT, **(config_default().contabilidad.cuentas or {})}


class Catalogo(Protocol):
    def __contains__(self, codigo: object) -> bool: ...


class ErrorValidacion(str, Enum):
    POCAS_LINEAS = "pocas_lineas"
    DESCUADRE = "descuadre"
    CUENTA_INEXISTENTE = "cuenta_inexistente"
    MONTO_NEGATIVO = "monto_negativo"


@dataclass(frozen=True)
class ResultadoValidacion:
    valido: bool
    error: Optional[ErrorValidacion] = None
    detalle: str = ""


class AsientoInvalido(ValueError):
    """El asiento no se puede registrar; `error` indica la regla incumplida."""

    def __init__(self, error: ErrorValidacion, detalle: str):
        super().__init__(detalle)
        self.error = error
        self.detalle = detalle


# ==========================================================
# Generación
# ==========================================================
def determinar_tipo_asiento(doc: DocumentoComercial) -> str:
    es_venta = doc.tipo_operacion == "venta"
    if doc.tipo in ("factura", "boleta", "ticket"):
        return "VENTA" if es_venta else "COMPRA"
    if doc.tipo == "nota_credito":
        return "NC_VENTA" if es_venta else "NC_COMPRA"
    if doc.tipo == "nota_debito":
        return "ND_VENTA" if es_venta else "ND_COMPRA"
    if doc.tipo == "recibo_honorarios":
        return "HONORARIOS_VENTA" if es_venta else "HONORARIOS_COMPRA"
    return "VENTA" if es_venta else "COMPRA"


def construir_glosa(doc: DocumentoComercial) -> str:
    tipo_doc = doc.tipo.replace("_", " ").upper()
    return f"{tipo_doc} {doc.serie}-{doc.numero} {doc.nombre_tercero}"


def _lineas_venta(doc: DocumentoComercial, cuenta_ingreso: str, glosa_ingreso: str, glosa_igv: str) -> list[LineaAsiento]:
    c = _cuentas()
    comprobante = f"{doc.serie}-{doc.numero}"
    return [
        LineaAsiento(c["cuentas_por_cobrar"], f"Cuentas por cobrar - {doc.nombre_tercero}", debe=redondear(doc.total)),
        LineaAsiento(cuenta_ingreso, f"{glosa_ingreso} - {comprobante}", haber=redondear(doc.subtotal)),
        LineaAsiento(c["igv"], f"{glosa_igv} - {comprobante}", haber=redondear(doc.igv)),
    ]


def _lineas_compra(doc: DocumentoComercial, cuenta_gasto: str, glosa_gasto: str, glosa_pagar: str) -> list[LineaAsiento]:
    c = _cuentas()
    return [
        LineaAsiento(cuenta_gasto, f"{glosa_gasto} - {doc.nombre_tercero}", debe=redondear(doc.subtotal)),
        LineaAsiento(c["igv"], f"Credito fiscal IGV - {doc.serie}-{doc.numero}", debe=redondear(doc.igv)),
        LineaAsiento(c["cuentas_por_pagar"], f"{glosa_pagar} - {doc.nombre_tercero}", haber=redondear(doc.total)),
    ]


def lineas_venta(doc: DocumentoComercial) -> list[LineaAsiento]:
    return _lineas_venta(doc, _cuentas()["ventas_mercaderias"], "Ventas mercaderias", "IGV ventas")


def lineas_compra(doc: DocumentoComercial) -> list[LineaAsiento]:
    return _lineas_compra(doc, _cuentas()["compras_mercaderias"], "Compras mercaderias", "Cuentas por pagar")


def lineas_honorarios_venta(doc: DocumentoComercial) -> list[LineaAsiento]:
    return _lineas_venta(doc, _cuentas()["ingresos_servicios"], "Ingresos por servicios", "IGV ventas servicios")


def lineas_honorarios_compra(doc: DocumentoComercial) -> list[LineaAsiento]:
    return _lineas_compra(doc, _cuentas()["servicios_terceros"], "Servicios terceros", "Cuentas por pagar honorarios")


def invertir_lineas(lineas: list[LineaAsiento]) -> list[LineaAsiento]:
    """Debe <-> Haber; revierte la operación que corrige."""
    return [replace(l, debe=l.haber, haber=l.debe) for l in lineas]


_GENERADORES = {
    "VENTA": lineas_venta,
    "COMPRA": lineas_compra,
    "NC_VENTA": lambda doc: invertir_lineas(lineas_venta(doc)),
    "NC_COMPRA": lambda doc: invertir_lineas(lineas_compra(doc)),
    "ND_VENTA": lineas_venta,
    "ND_COMPRA": lineas_compra,
    "HONORARIOS_VENTA": lineas_honorarios_venta,
    "HONORARIOS_COMPRA": lineas_honorarios_compra,
}


def generar_asiento(doc: DocumentoComercial) -> AsientoContable:
    tipo = determinar_tipo_asiento(doc)
    asiento = AsientoContable(
        glosa=construir_glosa(doc),
        tipo=tipo,
        lineas=tuple(_GENERADORES[tipo](doc)),
    )
    log.debug("Asiento %s generado para %s-%s", tipo, doc.serie, doc.numero)
    return asiento


# ==========================================================
# Validación
# ==========================================================
def validar_asiento(asiento: AsientoContable, catalogo: Optional[Catalogo] = None) -> ResultadoValidacion:
    """Valida partida doble, cuentas y montos. No modifica nada.

    Orden de las verificaciones:
    1. al menos 2 líneas
    2. total Debe == total Haber (redondeados a 2 decimales)
    3. todas las cuentas existen en el catálogo
    4. ninguna línea con montos negativos
    """
    catalogo = catalogo if catalogo is not None else catalogo_pcge()
    lineas = asiento.lineas or ()

    if len(lineas) < 2:
        return ResultadoValidacion(False, ErrorValidacion.POCAS_LINEAS, "El asiento debe tener al menos 2 lineas")

    total_debe = sum((redondear(l.debe) for l in lineas), CERO)
    total_haber = sum((redondear(l.haber) for l in lineas), CERO)
    if redondear(total_debe) != redondear(total_haber):
        return ResultadoValidacion(
            False,
            ErrorValidacion.DESCUADRE,
            f"Partida doble no cuadra: Debe {redondear(total_debe)} != Haber {redondear(total_haber)}",
        )

    for l in lineas:
        if l.cuenta_codigo not in catalogo:
            return ResultadoValidacion(
                False,
                ErrorValidacion.CUENTA_INEXISTENTE,
                f"Cuenta {l.cuenta_codigo} no existe en el catalogo PCGE",
            )

    for l in lineas:
        if l.debe < 0 or l.haber < 0:
            return ResultadoValidacion(
                False,
                ErrorValidacion.MONTO_NEGATIVO,
                f"Linea con cuenta {l.cuenta_codigo} tiene montos negativos",
            )

    return ResultadoValidacion(True)


def exigir_asiento_valido(asiento: AsientoContable, catalogo: Optional[Catalogo] = None) -> AsientoContable:
    """Lanza AsientoInvalido si el asiento no pasa la validación."""
    resultado = validar_asiento(asiento, catalogo)
    if not resultado.valido:
        log.warning("Asiento rechazado (%s): %s", resultado.error.value, resultado.detalle)
        raise AsientoInvalido(resultado.error, resultado.detalle)
    return asiento


def generar_asiento_validado(doc: DocumentoComercial, catalogo: Optional[Catalogo] = None) -> AsientoContable:
    return exigir_asiento_valido(generar_asiento(doc), catalogo)
