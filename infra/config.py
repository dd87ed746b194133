from __future__ import annotations
import yaml
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


RAIZ_PROYECTO = Path(__file__).resolve().parent.parent
CONFIG_DEFAULT = RAIZ_PROYECTO / "config.yaml"


@dataclass(frozen=True)
class AppConfig:
    title: str
    page_layout: str
    fecha_vista_formato: str


@dataclass(frozen=True)
class ConciliacionConfig:
    umbral_confianza: float = 0.40
    peso_importe: float = 0.50
    peso_fecha: float = 0.30
    peso_descripcion: float = 0.20
    nivel_alta: float = 0.85
    nivel_media: float = 0.60


@dataclass(frozen=True)
class LecturaConfig:
    csv_encodings: list[str] = field(default_factory=lambda: ["utf-8-sig", "utf-8", "cp1252", "latin1"])


@dataclass(frozen=True)
class ContabilidadConfig:
    dias_vencimiento_default: int = 30
    cuentas: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LoggingConfig:
    nivel: str = "INFO"


@dataclass(frozen=True)
class Config:
    app: AppConfig
    conciliacion: ConciliacionConfig
    lectura: LecturaConfig
    contabilidad: ContabilidadConfig
    logging: LoggingConfig


def load_config(path: str | Path | None = None) -> Config:
    """Lee config.yaml (por defecto el de la raíz del proyecto)."""
    ruta = Path(path) if path is not None else CONFIG_DEFAULT
    with open(ruta, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    app = AppConfig(**data["app"])
    conc = ConciliacionConfig(**(data.get("conciliacion") or {}))
    lec = LecturaConfig(**(data.get("lectura") or {}))
    cont = ContabilidadConfig(**(data.get("contabilidad") or {}))
    log = LoggingConfig(**(data.get("logging") or {}))

    return Config(app=app, conciliacion=conc, lectura=lec, contabilidad=cont, logging=log)


@lru_cache(maxsize=1)
def config_default() -> Config:
    """Config de la raíz, leída una sola vez por proceso."""
    return load_config()
