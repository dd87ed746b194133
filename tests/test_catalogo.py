from infra.catalogo import CatalogoCuentas, CuentaPCGE, cargar_catalogo, catalogo_pcge


def test_catalogo_pcge_cuentas_del_motor():
    cat = catalogo_pcge()
    for codigo in ("1212", "4011", "4212", "6011", "6329", "7011", "7041"):
        assert codigo in cat
    assert "9999" not in cat
    assert cat.existe("1011")


def test_obtener_cuenta():
    cuenta = catalogo_pcge().obtener("4011")
    assert cuenta.tipo == "pasivo"
    assert cuenta.naturaleza == "acreedora"
    assert cuenta.nivel == 4
    assert catalogo_pcge().obtener("0000") is None


def test_consultas():
    cat = catalogo_pcge()
    assert len(cat) > 300
    assert all(c.codigo.startswith("10") for c in cat.por_prefijo("10"))
    assert all(c.nivel == 4 for c in cat.de_movimiento())
    assert all(c.nivel == 1 for c in cat.padres())
    assert {c.tipo for c in cat.por_tipo("ingreso")} == {"ingreso"}
    assert len(cat.padres()) + len(cat.de_movimiento()) == len(cat)


def test_cargar_catalogo_desde_yaml(tmp_path):
    ruta = tmp_path / "mini.yaml"
    ruta.write_text(
        "cuentas:\n"
        "  - {codigo: 1212, nombre: Facturas por cobrar, tipo: activo, naturaleza: deudora, nivel: 4}\n"
        "  - {codigo: \"7011\", nombre: Ventas, tipo: ingreso, naturaleza: acreedora, nivel: 4}\n",
        encoding="utf-8",
    )
    cat = cargar_catalogo(ruta)
    assert len(cat) == 2
    # códigos numéricos en el YAML se normalizan a texto
    assert "1212" in cat


def test_codigos_repetidos_conservan_el_primero():
    cat = CatalogoCuentas([
        CuentaPCGE("10", "Efectivo", "activo", "deudora", 1),
        CuentaPCGE("10", "Duplicado", "activo", "deudora", 1),
    ])
    assert len(cat) == 1
    assert cat.obtener("10").nombre == "Efectivo"
