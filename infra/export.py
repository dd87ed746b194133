from __future__ import annotations
import io
import json
from typing import Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from infra.config import Config, config_default
from logic.conciliacion import nivel_confianza
from logic.fechas import reconocer_fecha
from logic.modelos import AsientoContable, ResultadoConciliacion


COLUMNAS_RESULTADO = [
    "estado",
    "nivel",
    "confianza",
    "fecha_banco",
    "descripcion_banco",
    "referencia_banco",
    "tipo_banco",
    "monto_banco",
    "documento_id",
]


def _fecha_celda(valor):
    """date -> Timestamp para que Excel la guarde como fecha; texto ilegible -> NaT."""
    if valor is None:
        return pd.NaT
    if isinstance(valor, str):
        valor = reconocer_fecha(valor)
        if valor is None:
            return pd.NaT
    return pd.Timestamp(valor)


def resultado_a_dataframe(resultado: ResultadoConciliacion, cfg: Optional[Config] = None) -> pd.DataFrame:
    """Una fila por par conciliado y por pendiente de cada lado."""
    cfg = cfg or config_default()
    rows = []
    for par in resultado.conciliados:
        m = par.movimiento
        rows.append({
            "estado": "Conciliado",
            "nivel": nivel_confianza(par.confianza, cfg),
            "confianza": float(par.confianza),
            "fecha_banco": _fecha_celda(m.fecha),
            "descripcion_banco": m.descripcion,
            "referencia_banco": m.referencia,
            "tipo_banco": m.tipo,
            "monto_banco": float(m.monto),
            "documento_id": par.documento_id,
        })

    for m in resultado.pendientes_banco:
        rows.append({
            "estado": "Pendiente (solo banco)",
            "nivel": "",
            "confianza": None,
            "fecha_banco": _fecha_celda(m.fecha),
            "descripcion_banco": m.descripcion,
            "referencia_banco": m.referencia,
            "tipo_banco": m.tipo,
            "monto_banco": float(m.monto),
            "documento_id": "",
        })

    for d in resultado.pendientes_sistema:
        rows.append({
            "estado": "Pendiente (solo sistema)",
            "nivel": "",
            "confianza": None,
            "fecha_banco": pd.NaT,
            "descripcion_banco": "",
            "referencia_banco": "",
            "tipo_banco": "",
            "monto_banco": None,
            "documento_id": d.id,
        })

    return pd.DataFrame(rows, columns=COLUMNAS_RESULTADO)


def asiento_a_dataframe(asiento: AsientoContable) -> pd.DataFrame:
    rows = [
        {
            "cuenta": l.cuenta_codigo,
            "glosa": l.glosa,
            "debe": float(l.debe),
            "haber": float(l.haber),
        }
        for l in asiento.lineas
    ]
    df = pd.DataFrame(rows, columns=["cuenta", "glosa", "debe", "haber"])
    totales = pd.DataFrame([{
        "cuenta": "",
        "glosa": "TOTALES",
        "debe": float(asiento.total_debe),
        "haber": float(asiento.total_haber),
    }])
    return pd.concat([df, totales], ignore_index=True)


def resultado_a_json(resultado: ResultadoConciliacion, indent: Optional[int] = 2) -> str:
    return json.dumps(resultado.a_dict(), ensure_ascii=False, indent=indent)


def dataframe_a_excel_bytes(
    df: pd.DataFrame,
    sheet_name: str = "Conciliacion",
    formatos: dict[str, str] | None = None,
) -> bytes:
    """
    Exporta un DataFrame a Excel conservando fechas y montos como valores (no texto).
    `formatos` = {columna: number_format}, p.ej. {"fecha_banco": "DD/MM/YYYY", "monto_banco": "#,##0.00"}.
    """
    buff = io.BytesIO()
    with pd.ExcelWriter(buff, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
        ws = writer.sheets[sheet_name]
        ws.freeze_panes = "A2"
        for idx, col_name in enumerate(df.columns, start=1):
            letra = get_column_letter(idx)
            ancho = max([len(str(col_name))] + [len(str(v)) for v in df[col_name].head(200)])
            ws.column_dimensions[letra].width = min(ancho + 2, 60)
            fmt = (formatos or {}).get(col_name)
            if fmt:
                for (cell,) in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
                    cell.number_format = fmt
    return buff.getvalue()


def resultado_a_excel_bytes(resultado: ResultadoConciliacion, cfg: Optional[Config] = None) -> bytes:
    cfg = cfg or config_default()
    return dataframe_a_excel_bytes(
        resultado_a_dataframe(resultado, cfg),
        sheet_name="Conciliacion",
        formatos={
            "fecha_banco": cfg.app.fecha_vista_formato,
            "monto_banco": "#,##0.00",
            "confianza": "0.00",
        },
    )
