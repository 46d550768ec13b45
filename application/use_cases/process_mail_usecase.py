# application/use_cases/process_mail_usecase.py
from __future__ import annotations
import logging
from typing import Callable

from domain.models import (
    Attachment,
    DownloadPaths,
    MailItem,
    PerMessageReport,
    Routed,
    RoutingOutcome,
    Unrouted,
)
from application.services.cnpj_extractor import extract_cnpj
from application.services.file_router import route
from infrastructure.filesystem.storage import TempStorage

logger = logging.getLogger(__name__)


class ProcessMailUseCase:
    def __init__(
        self,
        *,
        paths: DownloadPaths,
        allowed_ext: str = ".xml",
        extractor: Callable = extract_cnpj,
    ) -> None:
        self.paths = paths
        self.allowed_ext = allowed_ext
        self.extractor = extractor
        self.staging = TempStorage(base=paths.staging)

    def process_mail(self, mail: MailItem) -> PerMessageReport:
        """
        Procesa los adjuntos del correo en orden. Un adjunto que falla no
        interrumpe a los demás: cada uno aporta su resultado al informe.
        """
        report = PerMessageReport(uid=mail.uid)
        for att in mail.attachments:
            if not att.has_extension(self.allowed_ext):
                logger.debug(
                    "Adjunto ignorado (no %s): %s [%s]", self.allowed_ext, att.filename, att.content_type,
                )
                continue
            report.outcomes.append(self._process_attachment(mail, att))

        if not report.had_valid_attachment:
            logger.info("Ningún adjunto válido en el correo UID=%s", mail.uid, extra={"uid": mail.uid})
        return report

    def _process_attachment(self, mail: MailItem, att: Attachment) -> RoutingOutcome:
        ctx = {"uid": mail.uid, "attachment": att.filename, "content_type": att.content_type}
        try:
            # 1) staging
            staged = self.staging.save_bytes(att.filename, att.content)
            logger.info(
                "Fichero XML %s [%s] descargado en %s", att.filename, att.content_type, staged, extra=ctx,
            )

            # 2) CNPJ del emitente
            cnpj = self.extractor(staged)

            # 3) carpeta destino (se crea si no existe) y movimiento
            dest_dir = route(self.paths.root, self.paths.invalid, cnpj)
            dest = self.staging.move_to(staged, dest_dir, att.filename)
            logger.info(
                "Fichero XML %s movido a %s", att.filename, dest,
                extra={**ctx, "destination": str(dest), "cnpj": cnpj},
            )
        except Exception as exc:
            logger.exception("Fallo procesando el adjunto %s (UID=%s)", att.filename, mail.uid, extra=ctx)
            return Unrouted(filename=att.filename, reason=str(exc) or type(exc).__name__)

        if cnpj and dest_dir != self.paths.invalid:
            return Routed(filename=att.filename, identifier=cnpj, destination=dest)
        reason = "sin CNPJ" if not cnpj else f"CNPJ no utilizable: {cnpj!r}"
        return Unrouted(filename=att.filename, reason=reason, destination=dest)
