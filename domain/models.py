# domain/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class MailboxConfig:
    host: str
    port: int
    username: str
    password: str
    use_ssl: bool = True
    folder: str = "INBOX"
    timeout: float = 60.0
    subject_filters: tuple[str, ...] = ()


@dataclass(frozen=True)
class DownloadPaths:
    root: Path
    staging: Path
    invalid: Path

    @classmethod
    def under(cls, root: Path, staging: str | Path, invalid: str | Path) -> "DownloadPaths":
        # rutas relativas cuelgan de root; las absolutas se respetan
        root = Path(root).resolve()
        return cls(root=root, staging=root / staging, invalid=root / invalid)


@dataclass(frozen=True)
class SearchQuery:
    unseen_only: bool = True
    subject_filters: tuple[str, ...] = ()

    def to_imap_criteria(self) -> list[str]:
        """
        Construye: UNSEEN [OR SUBJECT f1 OR SUBJECT f2 ... SUBJECT fn]
        Los criterios consecutivos en IMAP se combinan con AND; OR es prefijo binario.
        """
        criteria: list[str] = ["UNSEEN"] if self.unseen_only else ["ALL"]
        filters = [f for f in self.subject_filters if f]
        for i, f in enumerate(filters):
            if i < len(filters) - 1:
                criteria.append("OR")
            criteria.extend(["SUBJECT", f])
        return criteria

    def matches(self, subject: str, seen: bool) -> bool:
        """
        Evaluación local equivalente a to_imap_criteria() (SUBJECT en IMAP es
        subcadena sin distinguir mayúsculas). La usa el buzón en memoria de
        los tests para filtrar igual que el servidor.
        """
        if self.unseen_only and seen:
            return False
        filters = [f for f in self.subject_filters if f]
        if not filters:
            return True
        s = (subject or "").lower()
        return any(f.lower() in s for f in filters)


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str

    def has_extension(self, ext: str) -> bool:
        return (self.filename or "").lower().endswith(ext.lower())


@dataclass
class MailItem:
    uid: int
    subject: str
    from_addr: str
    date_str: str
    attachments: list[Attachment]


@dataclass(frozen=True)
class Routed:
    filename: str
    identifier: str
    destination: Path


@dataclass(frozen=True)
class Unrouted:
    filename: str
    reason: str
    # None si el adjunto falló antes de llegar a la carpeta de inválidos
    destination: Path | None = None


RoutingOutcome = Union[Routed, Unrouted]


@dataclass
class PerMessageReport:
    uid: int
    outcomes: list[RoutingOutcome] = field(default_factory=list)

    @property
    def routed_count(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, Routed))

    @property
    def unrouted_count(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, Unrouted))

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, Unrouted) and o.destination is None)

    @property
    def had_valid_attachment(self) -> bool:
        return bool(self.outcomes)


@dataclass
class CycleReport:
    messages_found: int = 0
    messages_processed: int = 0
    fetch_failures: int = 0
    flag_failures: int = 0
    routed: int = 0
    unrouted: int = 0
    error: str | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped

    def add(self, report: PerMessageReport) -> None:
        self.messages_processed += 1
        self.routed += report.routed_count
        self.unrouted += report.unrouted_count
