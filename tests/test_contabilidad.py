from datetime import date
from decimal import Decimal

import pytest

from logic.contabilidad import (
    AsientoInvalido,
    ErrorValidacion,
    construir_glosa,
    determinar_tipo_asiento,
    exigir_asiento_valido,
    generar_asiento,
    generar_asiento_validado,
    validar_asiento,
)
from logic.modelos import AsientoContable, DocumentoComercial, LineaAsiento


TIPOS = ["factura", "boleta", "ticket", "nota_credito", "nota_debito", "recibo_honorarios"]


def documento(tipo="factura", operacion="venta", subtotal="1000.00", igv="180.00", total="1180.00"):
    return DocumentoComercial(
        id="D1", tipo=tipo, tipo_operacion=operacion, serie="F001", numero="123",
        nombre_tercero="ACME SAC", fecha_emision=date(2025, 3, 3),
        subtotal=Decimal(subtotal), igv=Decimal(igv), total=Decimal(total),
    )


def resumen(asiento):
    return [(l.cuenta_codigo, l.debe, l.haber) for l in asiento.lineas]


def test_factura_de_venta():
    asiento = generar_asiento(documento())
    assert asiento.tipo == "VENTA"
    assert asiento.glosa == "FACTURA F001-123 ACME SAC"
    assert resumen(asiento) == [
        ("1212", Decimal("1180.00"), Decimal("0")),
        ("7011", Decimal("0"), Decimal("1000.00")),
        ("4011", Decimal("0"), Decimal("180.00")),
    ]
    assert validar_asiento(asiento).valido


def test_factura_de_compra():
    asiento = generar_asiento(documento(operacion="compra"))
    assert asiento.tipo == "COMPRA"
    assert resumen(asiento) == [
        ("6011", Decimal("1000.00"), Decimal("0")),
        ("4011", Decimal("180.00"), Decimal("0")),
        ("4212", Decimal("0"), Decimal("1180.00")),
    ]
    assert asiento.lineas[1].glosa == "Credito fiscal IGV - F001-123"


def test_honorarios_usan_cuentas_de_servicios():
    venta = generar_asiento(documento("recibo_honorarios", "venta"))
    compra = generar_asiento(documento("recibo_honorarios", "compra"))
    assert venta.tipo == "HONORARIOS_VENTA"
    assert [l.cuenta_codigo for l in venta.lineas] == ["1212", "7041", "4011"]
    assert compra.tipo == "HONORARIOS_COMPRA"
    assert [l.cuenta_codigo for l in compra.lineas] == ["6329", "4011", "4212"]


def test_nota_de_credito_invierte_debe_y_haber():
    venta = generar_asiento(documento())
    nc = generar_asiento(documento("nota_credito"))
    assert nc.tipo == "NC_VENTA"
    assert resumen(nc) == [(c, h, d) for c, d, h in resumen(venta)]

    nc_compra = generar_asiento(documento("nota_credito", "compra"))
    assert nc_compra.tipo == "NC_COMPRA"
    assert nc_compra.lineas[-1].debe == Decimal("1180.00")


def test_nota_de_debito_igual_a_la_operacion():
    nd = generar_asiento(documento("nota_debito"))
    assert nd.tipo == "ND_VENTA"
    assert resumen(nd) == resumen(generar_asiento(documento()))


@pytest.mark.parametrize("tipo", TIPOS)
@pytest.mark.parametrize("operacion", ["venta", "compra"])
def test_todo_asiento_generado_cuadra_y_es_valido(tipo, operacion):
    asiento = generar_asiento(documento(tipo, operacion, "84.75", "15.26", "100.01"))
    assert asiento.total_debe == asiento.total_haber
    assert validar_asiento(asiento).valido


def test_tipo_desconocido_cae_a_venta_o_compra():
    assert determinar_tipo_asiento(documento("liquidacion")) == "VENTA"
    assert determinar_tipo_asiento(documento("liquidacion", "compra")) == "COMPRA"


def test_construir_glosa():
    assert construir_glosa(documento("nota_credito")) == "NOTA CREDITO F001-123 ACME SAC"


def test_asiento_descuadrado():
    asiento = AsientoContable("Ajuste", "VENTA", (
        LineaAsiento("1212", "x", debe=Decimal("100.00")),
        LineaAsiento("7011", "x", haber=Decimal("99.99")),
    ))
    r = validar_asiento(asiento)
    assert not r.valido
    assert r.error == ErrorValidacion.DESCUADRE


def test_pocas_lineas():
    asiento = AsientoContable("Ajuste", "VENTA", (LineaAsiento("XXXX", "x", debe=Decimal("1")),))
    r = validar_asiento(asiento)
    # se informa antes que la cuenta inexistente
    assert r.error == ErrorValidacion.POCAS_LINEAS
    assert validar_asiento(AsientoContable("Vacío", "VENTA")).error == ErrorValidacion.POCAS_LINEAS


def test_cuenta_inexistente():
    asiento = AsientoContable("Ajuste", "VENTA", (
        LineaAsiento("1212", "x", debe=Decimal("50.00")),
        LineaAsiento("9999", "x", haber=Decimal("50.00")),
    ))
    r = validar_asiento(asiento)
    assert r.error == ErrorValidacion.CUENTA_INEXISTENTE
    assert "9999" in r.detalle


def test_monto_negativo():
    asiento = AsientoContable("Ajuste", "VENTA", (
        LineaAsiento("1212", "x", debe=Decimal("100.00")),
        LineaAsiento("7011", "x", haber=Decimal("100.00")),
        LineaAsiento("4011", "x", debe=Decimal("-10.00"), haber=Decimal("-10.00")),
    ))
    assert validar_asiento(asiento).error == ErrorValidacion.MONTO_NEGATIVO


def test_catalogo_propio():
    asiento = generar_asiento(documento())
    assert validar_asiento(asiento, {"1212", "7011", "4011"}).valido
    assert validar_asiento(asiento, {"1212"}).error == ErrorValidacion.CUENTA_INEXISTENTE


def test_exigir_asiento_valido_lanza_error():
    asiento = AsientoContable("Ajuste", "VENTA", (
        LineaAsiento("1212", "x", debe=Decimal("100.00")),
        LineaAsiento("7011", "x", haber=Decimal("99.99")),
    ))
    with pytest.raises(AsientoInvalido) as exc:
        exigir_asiento_valido(asiento)
    assert exc.value.error == ErrorValidacion.DESCUADRE
    assert isinstance(exc.value, ValueError)


def test_generar_asiento_validado():
    asiento = generar_asiento_validado(documento())
    assert asiento.total_debe == Decimal("1180.00")


def test_generacion_idempotente():
    assert generar_asiento(documento()) == generar_asiento(documento())
