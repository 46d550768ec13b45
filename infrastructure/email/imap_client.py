# infrastructure/email/imap_client.py
from __future__ import annotations
import logging
from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError
import pyzmail

from domain.errors import FetchError, FlagError, MailboxConnectionError, SearchError
from domain.models import Attachment, MailboxConfig, MailItem, SearchQuery

logger = logging.getLogger(__name__)

# errores de protocolo y de socket (timeout incluido)
_IMAP_ERRORS = (IMAPClientError, OSError)


class IMAPInbox:
    def __init__(self, config: MailboxConfig) -> None:
        self.config = config
        self.client: IMAPClient | None = None

    def __enter__(self) -> "IMAPInbox":
        cfg = self.config
        try:
            client = IMAPClient(cfg.host, port=cfg.port, ssl=cfg.use_ssl, timeout=cfg.timeout)
        except _IMAP_ERRORS as exc:
            raise MailboxConnectionError(f"No se pudo conectar a {cfg.host}:{cfg.port}: {exc}") from exc
        try:
            client.login(cfg.username, cfg.password)
        except _IMAP_ERRORS as exc:
            try:
                client.shutdown()
            except OSError:
                logger.debug("Socket ya cerrado tras fallo de login")
            raise MailboxConnectionError(f"Login IMAP rechazado para {cfg.username}: {exc}") from exc
        self.client = client
        logger.info("Conectado a IMAP %s:%s como %s", cfg.host, cfg.port, cfg.username)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.close()
        except MailboxConnectionError:
            if exc_type is None:
                raise
            logger.exception("Error cerrando IMAP")

    def close(self) -> None:
        if self.client is None:
            return
        client, self.client = self.client, None
        try:
            client.logout()
        except _IMAP_ERRORS as exc:
            raise MailboxConnectionError(f"Error cerrando la sesión IMAP: {exc}") from exc
        logger.info("Desconectado de IMAP %s", self.config.host)

    def select_folder(self, folder: str | None = None) -> None:
        assert self.client
        folder = folder or self.config.folder
        try:
            self.client.select_folder(folder, readonly=False)
        except _IMAP_ERRORS as exc:
            raise MailboxConnectionError(f"No se pudo abrir la carpeta {folder}: {exc}") from exc

    def search(self, query: SearchQuery) -> list[int]:
        assert self.client
        criteria = query.to_imap_criteria()
        charset = None if all(f.isascii() for f in query.subject_filters) else "UTF-8"
        try:
            uids = self.client.search(criteria, charset=charset)
        except _IMAP_ERRORS as exc:
            raise SearchError(f"Fallo en la búsqueda {criteria}: {exc}") from exc
        return sorted(uids)  # procesar en orden

    def fetch_mail(self, uid: int) -> MailItem:
        assert self.client
        try:
            resp = self.client.fetch([uid], ["RFC822"])
        except _IMAP_ERRORS as exc:
            raise FetchError(f"No se pudo descargar UID={uid}: {exc}") from exc
        data = resp.get(uid) or {}
        raw = data.get(b"RFC822")
        if not raw:
            raise FetchError(f"Respuesta sin RFC822 para UID={uid}")
        try:
            return parse_mail(uid, raw)
        except Exception as exc:
            raise FetchError(f"No se pudo interpretar el correo UID={uid}: {exc}") from exc

    def mark_seen(self, uid: int) -> None:
        assert self.client
        try:
            self.client.add_flags([uid], [b"\\Seen"])
        except _IMAP_ERRORS as exc:
            raise FlagError(f"No se pudo marcar como leído UID={uid}: {exc}") from exc


def parse_mail(uid: int, raw: bytes) -> MailItem:
    msg = pyzmail.PyzMessage.factory(raw)

    subject = msg.get_subject() or ""
    from_addr = msg.get_addresses("from")[0][1] if msg.get_addresses("from") else ""
    date_str = str(msg.get_decoded_header("date") or "")

    atts: list[Attachment] = []
    for part in msg.mailparts:
        if part.is_body or not part.filename:
            continue
        ctype = part.type or "application/octet-stream"
        payload = part.get_payload()
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        if isinstance(payload, bytes):
            atts.append(Attachment(filename=part.filename, content=payload, content_type=ctype))

    return MailItem(uid=uid, subject=subject, from_addr=from_addr, date_str=date_str, attachments=atts)
