"""Shared fixtures: settings, sample NF-e documents, EML builders and an in-memory inbox."""

from __future__ import annotations

from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

import pytest

from config.settings import Settings
from domain.errors import FetchError, FlagError, MailboxConnectionError
from domain.models import SearchQuery
from infrastructure.email.imap_client import parse_mail


# ------------------------------------------------------------------
# Sample documents
# ------------------------------------------------------------------


def nfe_xml(cnpj: str | None = "12345678000199", *, namespaced: bool = False, nnf: int = 1) -> bytes:
    ns = ' xmlns="http://www.portalfiscal.inf.br/nfe"' if namespaced else ""
    cnpj_el = f"<CNPJ>{cnpj}</CNPJ>" if cnpj is not None else "<CPF>12345678901</CPF>"
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f"<nfeProc{ns}><NFe><infNFe>"
        f"<ide><nNF>{nnf}</nNF></ide>"
        f"<emit>{cnpj_el}<xNome>Emitente LTDA</xNome></emit>"
        f"<dest><CNPJ>99999999000100</CNPJ></dest>"
        f"</infNFe></NFe></nfeProc>"
    ).encode("utf-8")


def build_email(
    *,
    subject: str = "NFe 0001",
    attachments: list[tuple[str, str, bytes]] | None = None,
) -> bytes:
    """Build a multipart email with a text body and the given attachments."""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = "fornecedor@example.com"
    msg["To"] = "fiscal@example.com"
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"
    msg.attach(MIMEText("Segue nota fiscal em anexo.", "plain"))

    for filename, content_type, payload in attachments or []:
        maintype, subtype = content_type.split("/", 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(payload)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(part)

    return msg.as_bytes()


# ------------------------------------------------------------------
# In-memory mailbox
# ------------------------------------------------------------------


class FakeMailbox:
    """Mailbox state shared across sessions (survives between cycles)."""

    def __init__(self) -> None:
        self.messages: dict[int, dict] = {}
        self.fail_connect = False
        self.fail_fetch: set[int] = set()
        self.fail_flag: set[int] = set()
        self.sessions = 0
        self.closed = 0

    def add(self, uid: int, raw: bytes, *, subject: str = "NFe 0001", seen: bool = False) -> None:
        self.messages[uid] = {"raw": raw, "subject": subject, "seen": seen}

    def seen(self, uid: int) -> bool:
        return self.messages[uid]["seen"]

    def factory(self, _config) -> "FakeInbox":
        return FakeInbox(self)


class FakeInbox:
    def __init__(self, mailbox: FakeMailbox) -> None:
        self.mailbox = mailbox

    def __enter__(self) -> "FakeInbox":
        if self.mailbox.fail_connect:
            raise MailboxConnectionError("connection refused")
        self.mailbox.sessions += 1
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.mailbox.closed += 1

    def select_folder(self, folder: str | None = None) -> None:
        pass

    def search(self, query: SearchQuery) -> list[int]:
        return sorted(
            uid
            for uid, m in self.mailbox.messages.items()
            if query.matches(m["subject"], m["seen"])
        )

    def fetch_mail(self, uid: int):
        if uid in self.mailbox.fail_fetch:
            raise FetchError(f"fetch failed for {uid}")
        return parse_mail(uid, self.mailbox.messages[uid]["raw"])

    def mark_seen(self, uid: int) -> None:
        if uid in self.mailbox.fail_flag:
            raise FlagError(f"flag failed for {uid}")
        self.mailbox.messages[uid]["seen"] = True


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def download_root(tmp_path: Path) -> Path:
    return tmp_path / "downloads"


@pytest.fixture
def settings(download_root: Path) -> Settings:
    return Settings(
        IMAP_HOST="imap.test.com",
        IMAP_PORT=993,
        IMAP_USERNAME="testuser",
        IMAP_PASSWORD="testpass",
        IMAP_SSL=True,
        IMAP_FOLDER_INBOX="INBOX",
        IMAP_TIMEOUT=60.0,
        MAIL_SUBJECT_MATCH="",
        ATTACH_EXT=".xml",
        DOWNLOAD_ROOT=str(download_root),
        DOWNLOAD_STAGING_DIR="_tmp",
        DOWNLOAD_INVALID_DIR="_invalidos",
        POLL_INTERVAL=1,
        LOG_DIR="",
    )


@pytest.fixture
def mailbox() -> FakeMailbox:
    return FakeMailbox()
