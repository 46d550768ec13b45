# interface_adapters/controllers/polling_controller.py
from __future__ import annotations
import logging
import threading
from typing import Callable

from config.settings import Settings
from application.use_cases.process_mail_usecase import ProcessMailUseCase
from domain.errors import FetchError, FlagError
from domain.models import CycleReport, MailboxConfig
from infrastructure.email.imap_client import IMAPInbox
from infrastructure.filesystem.storage import ensure_dir

logger = logging.getLogger(__name__)

InboxFactory = Callable[[MailboxConfig], IMAPInbox]


class PollingController:
    def __init__(self, settings: Settings, inbox_factory: InboxFactory = IMAPInbox) -> None:
        self.settings = settings
        self.mailbox = settings.mailbox_config()
        self.query = settings.search_query()
        self.paths = settings.download_paths()
        self.inbox_factory = inbox_factory
        self.uc = ProcessMailUseCase(paths=self.paths, allowed_ext=settings.attach_ext())
        self._running = threading.Lock()

    # ───────────────────────── preparación ─────────────────────────
    def _ensure_dirs(self) -> None:
        if ensure_dir(self.paths.invalid):
            logger.info("Carpeta para ficheros inválidos creada en %s", self.paths.invalid)
        self.uc.staging.ensure()

    # ───────────────────────── ejecución ─────────────────────────
    def _process_uid(self, inbox: IMAPInbox, uid: int, report: CycleReport) -> None:
        try:
            mail = inbox.fetch_mail(uid)
        except FetchError:
            logger.exception("No se pudo descargar el correo UID=%s; se reintentará", uid, extra={"uid": uid})
            report.fetch_failures += 1
            return

        logger.info(
            "Procesando correo UID=%s de %s (%s): %s",
            uid, mail.from_addr or "?", mail.date_str or "sin fecha", mail.subject,
            extra={"uid": uid},
        )
        msg_report = self.uc.process_mail(mail)
        report.add(msg_report)

        # marcar como leído solo tras procesar todos los adjuntos
        try:
            inbox.mark_seen(uid)
            logger.info("Correo UID=%s marcado como leído", uid, extra={"uid": uid})
        except FlagError:
            logger.exception("No se pudo marcar como leído UID=%s", uid, extra={"uid": uid})
            report.flag_failures += 1

    def run_once(self) -> CycleReport:
        """Un ciclo completo de ingesta. Nunca lanza: los errores quedan en el informe."""
        if not self._running.acquire(blocking=False):
            logger.warning("Ciclo anterior aún en curso; se omite este disparo")
            return CycleReport(skipped=True)
        try:
            return self._run_cycle()
        finally:
            self._running.release()

    def _run_cycle(self) -> CycleReport:
        report = CycleReport()
        try:
            self._ensure_dirs()
            with self.inbox_factory(self.mailbox) as inbox:
                inbox.select_folder(self.mailbox.folder)
                uids = inbox.search(self.query)
                report.messages_found = len(uids)
                if not uids:
                    logger.info("Sin correos nuevos (IMAP).")
                else:
                    logger.info("Procesando %d correos (IMAP)…", len(uids))
                for uid in uids:
                    self._process_uid(inbox, uid, report)
        except Exception as exc:
            logger.exception("Error al procesar correos")
            report.error = str(exc) or type(exc).__name__
            return report

        logger.info(
            "Ciclo terminado: %d correos, %d XML enrutados, %d a inválidos/fallidos",
            report.messages_processed, report.routed, report.unrouted,
        )
        return report
