from __future__ import annotations
import yaml
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Literal, Optional


TipoCuenta = Literal["activo", "pasivo", "patrimonio", "ingreso", "gasto", "costo"]
Naturaleza = Literal["deudora", "acreedora"]

PCGE_YAML = Path(__file__).resolve().parent / "pcge.yaml"


@dataclass(frozen=True)
class CuentaPCGE:
    codigo: str
    nombre: str
    tipo: TipoCuenta
    naturaleza: Naturaleza
    nivel: int


class CatalogoCuentas:
    """Catálogo de cuentas indexado por código.

    El motor contable solo pregunta `existe(codigo)`; el resto de consultas
    son para pantallas y reportes.
    """

    def __init__(self, cuentas: Iterable[CuentaPCGE]):
        self._cuentas: dict[str, CuentaPCGE] = {}
        for c in cuentas:
            self._cuentas.setdefault(c.codigo, c)

    def __contains__(self, codigo: object) -> bool:
        return codigo in self._cuentas

    def __len__(self) -> int:
        return len(self._cuentas)

    def __iter__(self):
        return iter(self._cuentas.values())

    def existe(self, codigo: str) -> bool:
        return codigo in self._cuentas

    def obtener(self, codigo: str) -> Optional[CuentaPCGE]:
        return self._cuentas.get(codigo)

    def por_tipo(self, tipo: TipoCuenta) -> list[CuentaPCGE]:
        return [c for c in self if c.tipo == tipo]

    def por_prefijo(self, prefijo: str) -> list[CuentaPCGE]:
        """Subcuentas de una cuenta padre, p.ej. "10" o "62"."""
        return [c for c in self if c.codigo.startswith(prefijo)]

    def de_movimiento(self) -> list[CuentaPCGE]:
        """Cuentas de nivel 4, las únicas donde se registran asientos."""
        return [c for c in self if c.nivel == 4]

    def padres(self) -> list[CuentaPCGE]:
        return [c for c in self if c.nivel == 1]


def cargar_catalogo(path: str | Path = PCGE_YAML) -> CatalogoCuentas:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    cuentas = [
        CuentaPCGE(
            codigo=str(row["codigo"]),
            nombre=row["nombre"],
            tipo=row["tipo"],
            naturaleza=row["naturaleza"],
            nivel=int(row["nivel"]),
        )
        for row in data.get("cuentas", [])
    ]
    return CatalogoCuentas(cuentas)


@lru_cache(maxsize=1)
def catalogo_pcge() -> CatalogoCuentas:
    return cargar_catalogo()
