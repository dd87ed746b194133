import logging
from typing import Optional

from infra.config import config_default


RAIZ = "conciliador"

_logger: Optional[logging.Logger] = None


def _raiz() -> logging.Logger:
    global _logger
    if _logger is not None:
        return _logger

    nivel = getattr(logging, config_default().logging.nivel.upper(), logging.INFO)

    logger = logging.getLogger(RAIZ)
    logger.setLevel(nivel)

    ch = logging.StreamHandler()
    ch.setLevel(nivel)
    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    _logger = logger
    return logger


def get_logger(name: str = RAIZ) -> logging.Logger:
    """Logger hijo de `conciliador` (p.ej. `conciliador.lectura`)."""
    raiz = _raiz()
    if name == RAIZ:
        return raiz
    if not name.startswith(RAIZ + "."):
        name = f"{RAIZ}.{name}"
    return logging.getLogger(name)
