from dataclasses import replace
from datetime import date
from decimal import Decimal

import pandas as pd
import streamlit as st

from infra.config import config_default
from infra.export import (
    asiento_a_dataframe,
    resultado_a_dataframe,
    resultado_a_excel_bytes,
    resultado_a_json,
)
from infra.loader_bancos import BANCOS, cargar_documentos, cargar_extracto, leer_tabla
from logic.antiguedad import calcular_antiguedad, resumen_antiguedad
from logic.conciliacion import Parametros, conciliar
from logic.contabilidad import AsientoInvalido, exigir_asiento_valido, generar_asiento
from logic.modelos import DocumentoComercial, redondear

# =========================
# Configuración inicial
# =========================
cfg = config_default()
st.set_page_config(page_title=cfg.app.title, layout=cfg.app.page_layout)
st.title(cfg.app.title)

tab_conc, tab_asiento = st.tabs(["Conciliación bancaria", "Asiento contable"])

# =========================
# Conciliación
# =========================
with tab_conc:
    with st.expander("ℹ️ Cómo usar la conciliación bancaria"):
        st.markdown("""
        ### 📂 Paso 1: Cargar archivos
        - **Extracto**: CSV/TXT exportado del banco (BCP, Interbank, BBVA u otro con cabecera).
        - **Documentos**: comprobantes pendientes de cobro/pago (CSV, XLSX, XLSM) con
          columnas como *id, fecha emisión, total, cliente/proveedor*.

        ### 🔎 Paso 2: Conciliación
        Cada movimiento se puntúa contra cada documento por **importe**, **fecha** y
        **descripción**. Se aceptan pares con confianza mayor o igual al umbral, cada
        movimiento y cada documento una sola vez.

        ### 📊 Paso 3: Resultados
        - Pares con nivel de confianza (alta / media / baja).
        - Pendientes solo en banco y solo en sistema, con antigüedad.
        - Descarga en Excel o JSON.
        """)

    col_up1, col_up2 = st.columns(2)
    with col_up1:
        banco = st.selectbox(
            "Banco",
            list(BANCOS),
            format_func=lambda k: BANCOS[k]["nombre"],
            key="banco",
        )
        archivo_extracto = st.file_uploader("Extracto bancario (CSV/TXT)", type=["csv", "txt"], key="extracto")
    with col_up2:
        archivo_docs = st.file_uploader(
            "Documentos pendientes (CSV/XLSX/XLSM)",
            type=["csv", "xlsx", "xlsm"],
            key="documentos",
        )

    st.subheader("Parámetros de conciliación")
    umbral = st.slider(
        "Confianza mínima",
        min_value=0.0, max_value=1.0,
        value=float(cfg.conciliacion.umbral_confianza), step=0.05,
    )

    if archivo_extracto and archivo_docs:
        movimientos = cargar_extracto(archivo_extracto, banco)

        hoja = 0
        if archivo_docs.name.lower().endswith((".xlsx", ".xlsm")):
            xls = pd.ExcelFile(archivo_docs, engine="openpyxl")
            if len(xls.sheet_names) > 1:
                hoja = st.selectbox("Documentos: seleccione hoja", xls.sheet_names, key="hoja_docs")
        try:
            documentos = cargar_documentos(leer_tabla(archivo_docs, archivo_docs.name, hoja))
        except ValueError as e:
            st.error(str(e))
            st.stop()

        st.caption(f"{len(movimientos)} movimientos leídos, {len(documentos)} documentos.")

        params = replace(Parametros.desde_config(cfg.conciliacion), umbral_confianza=redondear(umbral))
        resultado = conciliar(movimientos, documentos, params)
        sin_fecha = [m for m in resultado.pendientes_banco if isinstance(m.fecha, str)]
        if sin_fecha:
            st.warning(f"{len(sin_fecha)} movimientos con fecha no reconocida quedaron pendientes (p.ej. {sin_fecha[0].fecha!r}).")
        salida = resultado_a_dataframe(resultado, cfg)

        # ---- Vista con filtros ----
        st.markdown("**Resultado**")
        estados = sorted(salida["estado"].dropna().unique().tolist())
        estados_sel = st.multiselect("Filtrar por estado", estados, default=estados)
        salida_filtrada = salida[salida["estado"].isin(estados_sel)]

        def formatear_df_ui(df: pd.DataFrame):
            formatos = {
                "fecha_banco": lambda x: x.strftime("%d/%m/%Y") if pd.notnull(x) else "",
                "monto_banco": lambda x: f"{x:,.2f}" if pd.notnull(x) else "",
                "confianza": lambda x: f"{x:.2f}" if pd.notnull(x) else "",
            }
            return df.style.format(formatos)

        st.dataframe(formatear_df_ui(salida_filtrada), use_container_width=True)

        c1, c2, c3 = st.columns(3)
        c1.metric("Conciliados", len(resultado.conciliados))
        c2.metric("Pendientes banco", len(resultado.pendientes_banco))
        c3.metric("Pendientes sistema", len(resultado.pendientes_sistema))

        # ---- Antigüedad de pendientes ----
        if resultado.pendientes_sistema:
            st.markdown("**Antigüedad de documentos pendientes**")
            fecha_corte = st.date_input("Fecha de corte", value=date.today())
            items = calcular_antiguedad(resultado.pendientes_sistema, fecha_corte)
            resumen = resumen_antiguedad(items)
            st.dataframe(
                pd.DataFrame(
                    [{"rango": r, "total": float(t)} for r, t in resumen.por_rango.items()]
                ),
                use_container_width=True,
            )

        # ---- Exportar ----
        xls_bytes = resultado_a_excel_bytes(resultado, cfg)
        st.download_button("Descargar conciliación (xlsx)", data=xls_bytes, file_name="conciliacion.xlsx")
        st.download_button(
            "Descargar conciliación (json)",
            data=resultado_a_json(resultado),
            file_name="conciliacion.json",
            mime="application/json",
        )

# =========================
# Asiento contable
# =========================
with tab_asiento:
    with st.form("documento"):
        col1, col2, col3 = st.columns(3)
        with col1:
            tipo = st.selectbox(
                "Tipo de comprobante",
                ["factura", "boleta", "ticket", "nota_credito", "nota_debito", "recibo_honorarios"],
            )
            operacion = st.radio("Operación", ["venta", "compra"], horizontal=True)
        with col2:
            serie = st.text_input("Serie", "F001")
            numero = st.text_input("Número", "1")
            tercero = st.text_input("Cliente / proveedor", "")
        with col3:
            emision = st.date_input("Fecha de emisión", value=date.today())
            subtotal = st.number_input("Subtotal", min_value=0.0, step=0.01, format="%.2f")
            igv = st.number_input("IGV", min_value=0.0, step=0.01, format="%.2f")
        enviado = st.form_submit_button("Generar asiento")

    if enviado:
        doc = DocumentoComercial(
            id=f"{serie}-{numero}",
            tipo=tipo,
            tipo_operacion=operacion,
            serie=serie,
            numero=numero,
            nombre_tercero=tercero,
            fecha_emision=emision,
            subtotal=redondear(subtotal),
            igv=redondear(igv),
            total=redondear(Decimal(str(subtotal)) + Decimal(str(igv))),
        )
        asiento = generar_asiento(doc)
        st.markdown(f"**{asiento.tipo}**: {asiento.glosa}")
        st.dataframe(asiento_a_dataframe(asiento), use_container_width=True)

        try:
            exigir_asiento_valido(asiento)
            st.success("Asiento válido: cuadra y todas las cuentas existen en el PCGE.")
        except AsientoInvalido as e:
            st.error(f"{e.error.value}: {e.detalle}")
