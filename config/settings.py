# config/settings.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
from dotenv import load_dotenv

from domain.models import DownloadPaths, MailboxConfig, SearchQuery

load_dotenv()

@dataclass(frozen=True)
class Settings:
    # IMAP
    IMAP_HOST: str = os.getenv("IMAP_HOST", "imap.gmail.com")
    IMAP_PORT: int = int(os.getenv("IMAP_PORT", 993))
    IMAP_USERNAME: str = os.getenv("IMAP_USERNAME", "")
    IMAP_PASSWORD: str = os.getenv("IMAP_PASSWORD", "")
    IMAP_SSL: bool = os.getenv("IMAP_SSL", "true").lower() == "true"
    IMAP_FOLDER_INBOX: str = os.getenv("IMAP_FOLDER_INBOX", "INBOX")
    IMAP_TIMEOUT: float = float(os.getenv("IMAP_TIMEOUT", 60))

    # Filtros / adjuntos
    MAIL_SUBJECT_MATCH: str = os.getenv("MAIL_SUBJECT_MATCH", "")  # p.ej.: NFe,CTe
    ATTACH_EXT: str = os.getenv("ATTACH_EXT", ".xml")

    # Carpetas de descarga (staging e inválidos relativas a la raíz)
    DOWNLOAD_ROOT: str = os.getenv("DOWNLOAD_ROOT", "./downloads")
    DOWNLOAD_STAGING_DIR: str = os.getenv("DOWNLOAD_STAGING_DIR", "_tmp")
    DOWNLOAD_INVALID_DIR: str = os.getenv("DOWNLOAD_INVALID_DIR", "_invalidos")

    # Polling
    POLL_INTERVAL: int = int(os.getenv("POLL_INTERVAL", 3600))

    # Logs
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "./logs")  # vacío = solo consola

    # ───────── helpers ─────────
    def subject_filters(self) -> list[str]:
        raw = (self.MAIL_SUBJECT_MATCH or "").strip()
        return [s.strip() for s in raw.split(",") if s.strip()]

    def attach_ext(self) -> str:
        ext = (self.ATTACH_EXT or ".xml").strip().lower()
        return ext if ext.startswith(".") else f".{ext}"

    def mailbox_config(self) -> MailboxConfig:
        return MailboxConfig(
            host=self.IMAP_HOST,
            port=self.IMAP_PORT,
            username=self.IMAP_USERNAME,
            password=self.IMAP_PASSWORD,
            use_ssl=self.IMAP_SSL,
            folder=self.IMAP_FOLDER_INBOX,
            timeout=self.IMAP_TIMEOUT,
            subject_filters=tuple(self.subject_filters()),
        )

    def search_query(self) -> SearchQuery:
        return SearchQuery(unseen_only=True, subject_filters=tuple(self.subject_filters()))

    def download_paths(self) -> DownloadPaths:
        return DownloadPaths.under(Path(self.DOWNLOAD_ROOT), self.DOWNLOAD_STAGING_DIR, self.DOWNLOAD_INVALID_DIR)

    def log_dir_path(self) -> Path | None:
        return Path(self.LOG_DIR).resolve() if self.LOG_DIR.strip() else None
