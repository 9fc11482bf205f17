# app/core/logs.py
import logging

FORMATO = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configurar_logging(level: str = "INFO") -> None:
    """Configura o logger raiz "demandas" usado por todos os componentes."""
    root = logging.getLogger("demandas")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(FORMATO))
        root.addHandler(handler)
