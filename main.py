# main.py
# Punto de entrada: polling IMAP -> XML adjuntos -> carpeta por CNPJ del emitente
from __future__ import annotations
import logging
import signal
from config.settings import Settings
from interface_adapters.controllers.polling_controller import PollingController
from interface_adapters.controllers.polling_scheduler import PollingScheduler
from utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings()
    configure_logging(settings.LOG_LEVEL, settings.log_dir_path())

    controller = PollingController(settings=settings)
    scheduler = PollingScheduler(controller, interval=settings.POLL_INTERVAL)

    logger.info("=== Email Attachment Downloader ===")
    logger.info("IMAP host=%s inbox=%s", settings.IMAP_HOST, settings.IMAP_FOLDER_INBOX)
    logger.info("Destino=%s intervalo=%s s", controller.paths.root, settings.POLL_INTERVAL)

    def _handle(signum, _frame) -> None:
        logger.info("Señal %s recibida, deteniendo…", signal.Signals(signum).name)
        scheduler.stop(timeout=0)

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, _handle)

    scheduler.start()
    try:
        while not scheduler.wait(timeout=1.0):
            pass
    finally:
        # espera a que termine el ciclo en curso
        scheduler.stop()


if __name__ == "__main__":
    main()
