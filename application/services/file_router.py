# application/services/file_router.py
from __future__ import annotations
import logging
from pathlib import Path

from infrastructure.filesystem.storage import ensure_dir

logger = logging.getLogger(__name__)


def _is_safe_component(identifier: str) -> bool:
    return identifier not in (".", "..") and "/" not in identifier and "\\" not in identifier


def resolve_destination(root: Path, invalid: Path, identifier: str | None) -> Path:
    """root/<identifier> si hay identificador válido; si no, la carpeta de inválidos."""
    ident = (identifier or "").strip()
    if not ident:
        return invalid
    if not _is_safe_component(ident):
        logger.warning("Identificador no utilizable como carpeta: %r -> inválidos", ident)
        return invalid
    return root / ident


def route(root: Path, invalid: Path, identifier: str | None) -> Path:
    dest = resolve_destination(root, invalid, identifier)
    if ensure_dir(dest):
        logger.info("Carpeta para el CNPJ %s creada en %s", identifier or "-", dest)
    return dest
