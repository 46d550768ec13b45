# infrastructure/filesystem/storage.py
from __future__ import annotations
import filecmp
import glob
import logging
import os
import shutil
from pathlib import Path
import uuid

from domain.errors import AttachmentError

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> bool:
    """Crea la carpeta si no existe. Devuelve True si la ha creado."""
    existed = path.is_dir()
    path.mkdir(parents=True, exist_ok=True)
    return not existed


def safe_filename(name: str) -> str:
    # nunca aceptar rutas dentro del nombre del adjunto
    base = Path((name or "").replace("\\", "/")).name
    return base or "adjunto"


def _unique_name(name: str) -> str:
    # nota.xml -> nota.1a2b3c4d.xml
    stem, ext = os.path.splitext(name)
    return f"{stem}.{uuid.uuid4().hex[:8]}{ext}"


def _same_name_candidates(dest: Path) -> list[Path]:
    """dest y sus variantes con sufijo único (nota.xml, nota.<8 hex>.xml)."""
    stem, ext = os.path.splitext(dest.name)
    pattern = f"{glob.escape(stem)}.{'[0-9a-f]' * 8}{glob.escape(ext)}"
    return [dest] + sorted(dest.parent.glob(pattern))


class TempStorage:
    def __init__(self, base: Path) -> None:
        self.base = Path(base).resolve()

    def ensure(self) -> None:
        if ensure_dir(self.base):
            logger.info("Carpeta temporal creada en %s", self.base)

    def save_bytes(self, name_hint: str, data: bytes) -> Path:
        """
        Guarda con el nombre original del adjunto (creación exclusiva).
        Si ya existe un fichero con ese nombre se añade un sufijo único,
        de modo que nunca se pisa otro fichero en staging.
        """
        name = safe_filename(name_hint)
        fp = self.base / name
        try:
            try:
                with open(fp, "xb") as fh:
                    fh.write(data)
            except FileExistsError:
                fp = self.base / _unique_name(name)
                with open(fp, "xb") as fh:
                    fh.write(data)
        except OSError as exc:
            raise AttachmentError(f"No se pudo guardar {name} en {self.base}: {exc}") from exc
        return fp

    @staticmethod
    def move_to(src: Path, dest_dir: Path, filename: str) -> Path:
        """
        Mueve src a dest_dir/filename sin pisar nunca otro documento.

        - Si ya hay un fichero idéntico (mismo nombre o variante con sufijo)
          se descarta la copia de staging y se devuelve ese fichero: reprocesar
          el mismo correo deja el mismo resultado.
        - Si el nombre está ocupado por otro contenido se usa un sufijo único.
        """
        dest = dest_dir / safe_filename(filename)
        try:
            for existing in _same_name_candidates(dest):
                if existing.is_file() and filecmp.cmp(src, existing, shallow=False):
                    src.unlink()
                    logger.info("%s ya existe con el mismo contenido; se descarta la copia", existing)
                    return existing
        except OSError as exc:
            raise AttachmentError(f"No se pudo comparar {src} con {dest}: {exc}") from exc

        if dest.exists():
            taken = dest
            dest = dest_dir / _unique_name(dest.name)
            logger.warning("%s ya existe con otro contenido; se guarda como %s", taken, dest.name)

        try:
            os.replace(src, dest)
        except OSError:
            # distinto sistema de ficheros: copia + borrado
            try:
                shutil.copyfile(src, dest)
                src.unlink()
            except OSError as exc:
                raise AttachmentError(f"No se pudo mover {src} a {dest}: {exc}") from exc
        return dest
