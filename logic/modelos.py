from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Literal, Optional, Union


TipoMovimiento = Literal["cargo", "abono"]
TipoDocumento = Literal["factura", "boleta", "ticket", "nota_credito", "nota_debito", "recibo_honorarios"]
TipoOperacion = Literal["compra", "venta"]
TipoAsiento = Literal[
    "VENTA", "COMPRA",
    "NC_VENTA", "NC_COMPRA",
    "ND_VENTA", "ND_COMPRA",
    "HONORARIOS_VENTA", "HONORARIOS_COMPRA",
]

CENTIMO = Decimal("0.01")
CERO = Decimal("0")


def redondear(valor) -> Decimal:
    """Redondea a 2 decimales (half-up), aceptando int/float/str/Decimal."""
    if not isinstance(valor, Decimal):
        valor = Decimal(str(valor))
    return valor.quantize(CENTIMO, rounding=ROUND_HALF_UP)


def _fecha_json(valor: Union[date, str, None]) -> Optional[str]:
    if valor is None:
        return None
    if isinstance(valor, date):
        return valor.isoformat()
    return str(valor)


@dataclass(frozen=True)
class MovimientoBancario:
    fecha: Union[date, str]      # date si se reconoció el formato, si no el texto tal cual
    descripcion: str             # texto libre del banco
    referencia: str              # nro. de operación, puede venir vacío
    monto: Decimal               # magnitud, siempre > 0
    tipo: TipoMovimiento         # cargo resta saldo, abono suma
    saldo: Optional[Decimal] = None

    def a_dict(self) -> dict:
        return {
            "fecha": _fecha_json(self.fecha),
            "descripcion": self.descripcion,
            "referencia": self.referencia,
            "monto": str(self.monto),
            "tipo": self.tipo,
            "saldo": None if self.saldo is None else str(self.saldo),
        }


@dataclass(frozen=True)
class DocumentoComercial:
    id: str
    tipo: TipoDocumento
    tipo_operacion: TipoOperacion
    serie: str
    numero: str
    nombre_tercero: str
    fecha_emision: Union[date, str]
    subtotal: Decimal            # base imponible sin IGV
    igv: Decimal
    total: Decimal
    estado_pago: str = "pendiente"
    fecha_vencimiento: Union[date, str, None] = None

    def cuadra(self) -> bool:
        """total == subtotal + igv con tolerancia de un céntimo."""
        return abs(self.total - (self.subtotal + self.igv)) <= CENTIMO

    def a_dict(self) -> dict:
        return {
            "id": self.id,
            "tipo": self.tipo,
            "tipo_operacion": self.tipo_operacion,
            "serie": self.serie,
            "numero": self.numero,
            "nombre_tercero": self.nombre_tercero,
            "fecha_emision": _fecha_json(self.fecha_emision),
            "subtotal": str(self.subtotal),
            "igv": str(self.igv),
            "total": str(self.total),
            "estado_pago": self.estado_pago,
            "fecha_vencimiento": _fecha_json(self.fecha_vencimiento),
        }


@dataclass(frozen=True)
class ParConciliado:
    movimiento: MovimientoBancario
    documento_id: str
    confianza: Decimal           # en [0, 1], 2 decimales

    def a_dict(self) -> dict:
        return {
            "movimiento": self.movimiento.a_dict(),
            "documento_id": self.documento_id,
            "confianza": float(self.confianza),
        }


@dataclass(frozen=True)
class ResultadoConciliacion:
    conciliados: list[ParConciliado] = field(default_factory=list)
    pendientes_banco: list[MovimientoBancario] = field(default_factory=list)
    pendientes_sistema: list[DocumentoComercial] = field(default_factory=list)

    def a_dict(self) -> dict:
        return {
            "conciliados": [p.a_dict() for p in self.conciliados],
            "pendientes_banco": [m.a_dict() for m in self.pendientes_banco],
            "pendientes_sistema": [
                {"id": d.id, "total": str(d.total), "fecha": _fecha_json(d.fecha_emision)}
                for d in self.pendientes_sistema
            ],
        }


@dataclass(frozen=True)
class LineaAsiento:
    cuenta_codigo: str           # código PCGE (4 dígitos)
    glosa: str
    debe: Decimal = CERO
    haber: Decimal = CERO

    def a_dict(self) -> dict:
        return {
            "cuenta_codigo": self.cuenta_codigo,
            "glosa": self.glosa,
            "debe": str(self.debe),
            "haber": str(self.haber),
        }


@dataclass(frozen=True)
class AsientoContable:
    glosa: str
    tipo: str
    lineas: tuple[LineaAsiento, ...] = ()

    @property
    def total_debe(self) -> Decimal:
        return sum((redondear(l.debe) for l in self.lineas), CERO)

    @property
    def total_haber(self) -> Decimal:
        return sum((redondear(l.haber) for l in self.lineas), CERO)

    def a_dict(self) -> dict:
        return {
            "glosa": self.glosa,
            "tipo": self.tipo,
            "lineas": [l.a_dict() for l in self.lineas],
        }
