# interface_adapters/controllers/polling_scheduler.py
from __future__ import annotations
import logging
import threading

from domain.models import CycleReport
from interface_adapters.controllers.polling_controller import PollingController

logger = logging.getLogger(__name__)


class PollingScheduler:
    """
    Lanza un ciclo nada más arrancar y luego uno cada `interval` segundos,
    siempre desde un único hilo: los ciclos nunca se solapan.
    stop() impide nuevos disparos y deja terminar el ciclo en curso.
    """

    def __init__(self, controller: PollingController, interval: float) -> None:
        self.controller = controller
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="mail-polling", daemon=True)
        self._thread.start()
        logger.info("Polling iniciado (intervalo %s s)", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout)
        # solo se anuncia una vez, cuando el hilo ha terminado de verdad
        if not thread.is_alive():
            self._thread = None
            logger.info("Polling detenido")

    def wait(self, timeout: float | None = None) -> bool:
        return self._stop.wait(timeout)

    def trigger(self) -> CycleReport:
        return self.controller.run_once()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.controller.run_once()
            except Exception:
                logger.exception("Error en ciclo de polling")
            self._stop.wait(self.interval)
