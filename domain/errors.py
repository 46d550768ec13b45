# domain/errors.py
from __future__ import annotations


class IngestionError(Exception):
    """Base de los errores del ciclo de ingesta."""


class MailboxConnectionError(IngestionError):
    """Fallo de red, autenticación o apertura de carpeta. Aborta el ciclo."""


class SearchError(IngestionError):
    """La búsqueda IMAP falló. Aborta el ciclo."""


class FetchError(IngestionError):
    """No se pudo descargar/parsear un correo. Se salta ese correo."""


class AttachmentError(IngestionError):
    """Fallo guardando o moviendo un adjunto. Solo afecta a ese adjunto."""


class FlagError(IngestionError):
    """No se pudo marcar el correo como leído; se reprocesa en el siguiente ciclo."""
