import io
from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from infra.loader_bancos import (
    BANCOS,
    cargar_documentos,
    cargar_extracto,
    detectar_columnas_documentos,
    leer_tabla,
    leer_texto,
)


EXTRACTO_BCP = (
    "Fecha;Descripción;Referencia;Cargo;Abono;Saldo\n"
    "01/03/2025;PAGO PROVEEDOR ACME;OP123;1500.00;0.00;8500.00\n"
    "03/03/2025;DEPÓSITO CLIENTE;OP124;0.00;1180.00;9680.00\n"
)


def test_leer_texto_bytes_con_bom():
    texto = leer_texto(EXTRACTO_BCP.encode("utf-8-sig"))
    assert texto.startswith("Fecha;Descripción")


def test_leer_texto_latin1():
    texto = leer_texto(EXTRACTO_BCP.encode("latin1"))
    assert "DEPÓSITO CLIENTE" in texto


def test_leer_texto_archivos_y_rutas(tmp_path):
    ruta = tmp_path / "extracto.csv"
    ruta.write_bytes(EXTRACTO_BCP.encode("utf-8"))
    assert leer_texto(ruta) == EXTRACTO_BCP
    assert leer_texto(str(ruta)) == EXTRACTO_BCP
    assert leer_texto(io.BytesIO(EXTRACTO_BCP.encode("utf-8"))) == EXTRACTO_BCP
    assert leer_texto(io.StringIO(EXTRACTO_BCP)) == EXTRACTO_BCP


def test_leer_texto_no_decodificable():
    with pytest.raises(ValueError):
        leer_texto(b"\xff\xfe\xfa", encodings=["ascii", "utf-8"])


def test_cargar_extracto():
    movs = cargar_extracto(EXTRACTO_BCP.encode("cp1252"), "bcp")
    assert [(m.tipo, m.monto) for m in movs] == [("cargo", Decimal("1500.00")), ("abono", Decimal("1180.00"))]
    assert movs[1].descripcion == "DEPÓSITO CLIENTE"


def test_cargar_extracto_generico():
    texto = "Fecha,Concepto,Importe\n04/03/2025,PAGO LUZ,-80.00\n"
    movs = cargar_extracto(io.StringIO(texto), "generico")
    assert len(movs) == 1
    assert movs[0].tipo == "cargo"


def test_bancos_disponibles():
    assert set(BANCOS) == {"bcp", "interbank", "bbva", "generico"}


def tabla_documentos():
    return pd.DataFrame({
        "ID": ["F001-1", "F001-2", "F001-3", ""],
        "Tipo Documento": ["Factura", "Nota de Crédito", "Factura", "Factura"],
        "Operación": ["Venta", "Compra", "Venta", "Venta"],
        "Serie": ["F001", "F001", "F001", "F001"],
        "Número": ["1", "2", "3", "4"],
        "Cliente": ["ACME SAC", "PROVEEDOR SRL", "OTRO", "SIN ID"],
        "Fecha Emisión": ["03/03/2025", "2025-03-04", "05/03/2025", "06/03/2025"],
        "Subtotal": ["1000.00", "100.00", "0", "10.00"],
        "IGV": ["180.00", "18.00", "0", "1.80"],
        "Total": ["1,180.00", "118.00", "0", "11.80"],
    })


def test_detectar_columnas_documentos():
    mapeo = detectar_columnas_documentos(tabla_documentos())
    assert mapeo["id"] == "ID"
    assert mapeo["tipo"] == "Tipo Documento"
    assert mapeo["tipo_operacion"] == "Operación"
    assert mapeo["nombre_tercero"] == "Cliente"
    assert mapeo["fecha_emision"] == "Fecha Emisión"
    assert mapeo["subtotal"] == "Subtotal"
    assert mapeo["total"] == "Total"
    assert mapeo["fecha_vencimiento"] is None


def test_cargar_documentos():
    docs = cargar_documentos(tabla_documentos())
    # sin id o con total 0 se omiten
    assert [d.id for d in docs] == ["F001-1", "F001-2"]

    d1, d2 = docs
    assert d1.tipo == "factura"
    assert d1.tipo_operacion == "venta"
    assert d1.fecha_emision == date(2025, 3, 3)
    assert d1.total == Decimal("1180.00")
    assert d1.cuadra()
    assert d1.estado_pago == "pendiente"

    assert d2.tipo == "nota_credito"
    assert d2.tipo_operacion == "compra"
    assert d2.fecha_emision == date(2025, 3, 4)


def test_cargar_documentos_sin_subtotal():
    df = pd.DataFrame({"Codigo": ["B001-9"], "Fecha": ["10/03/2025"], "Importe": ["118.00"], "IGV": ["18.00"]})
    (d,) = cargar_documentos(df)
    assert d.id == "B001-9"
    assert d.subtotal == Decimal("100.00")
    assert d.tipo == "factura"


def test_cargar_documentos_faltan_columnas():
    with pytest.raises(ValueError):
        cargar_documentos(pd.DataFrame({"Cliente": ["ACME"]}))


def test_leer_tabla_csv():
    csv = "ID;Fecha;Total;Cliente\nF001-1;03/03/2025;1180.00;ACME SAC\n".encode("utf-8")
    df = leer_tabla(csv, "documentos.csv")
    assert list(df.columns) == ["ID", "Fecha", "Total", "Cliente"]
    docs = cargar_documentos(df)
    assert docs[0].nombre_tercero == "ACME SAC"


def test_leer_tabla_excel():
    buff = io.BytesIO()
    tabla_documentos().to_excel(buff, index=False, engine="openpyxl")
    buff.seek(0)
    df = leer_tabla(buff, "documentos.xlsx")
    assert len(cargar_documentos(df)) == 2
