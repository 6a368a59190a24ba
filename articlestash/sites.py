"""Field selector table: per-domain manual CSS selectors.

Example ``sites.toml``::

    ["example.com"]
    body = ".content .main"

    ["news.example.org"]
    title = "h1.headline"
    authors = ".byline a"
    date = "time[datetime]"

YAML files use the same shape (``example.com: {body: ".content .main"}``).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from articlestash.config import read_structured
from articlestash.errors import ConfigError
from articlestash.items import SelectorEntry

logger = logging.getLogger(__name__)

_INVALID_DOMAIN_RE = re.compile(r"[/\s]|://")


def normalize_domain(domain: str) -> str:
    """Lower-case *domain* and strip surrounding whitespace and a trailing dot."""
    return domain.strip().lower().rstrip(".")


class SelectorTable(Mapping[str, SelectorEntry]):
    """Read-only ``domain -> SelectorEntry`` mapping.

    Lookup is exact on the normalized domain: no subdomain wildcards and no
    path-specific overrides.  Instances never change after construction and
    can be shared between threads.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, SelectorEntry] | None = None) -> None:
        normalized: dict[str, SelectorEntry] = {}
        for raw_key, entry in (entries or {}).items():
            key = normalize_domain(raw_key)
            if not key or _INVALID_DOMAIN_RE.search(key):
                raise ConfigError(
                    f"invalid domain key {raw_key!r}: use a bare host name such as 'example.com'",
                )
            if key in normalized:
                raise ConfigError(f"duplicate domain key {raw_key!r}")
            normalized[key] = entry
        self._entries = MappingProxyType(normalized)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], path: str | Path | None = None) -> SelectorTable:
        """Build a table from an already-parsed ``{domain: {field: selector}}`` mapping."""
        entries: dict[str, SelectorEntry] = {}
        for domain, cfg in data.items():
            if not isinstance(domain, str):
                raise ConfigError(f"domain key must be a string, got {domain!r}", path)
            if cfg is None:
                cfg = {}
            if not isinstance(cfg, Mapping):
                raise ConfigError(f"entry for {domain!r} must be a table of selectors", path)
            try:
                entries[domain] = SelectorEntry.model_validate(dict(cfg))
            except ValidationError as exc:
                raise ConfigError(f"entry for {domain!r}: {exc}", path) from exc
        try:
            return cls(entries)
        except ConfigError as exc:
            if path is None:
                raise
            raise ConfigError(str(exc), path) from exc

    def lookup(self, domain: str) -> SelectorEntry | None:
        return self._entries.get(normalize_domain(domain))

    def __getitem__(self, domain: str) -> SelectorEntry:
        return self._entries[normalize_domain(domain)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SelectorTable({sorted(self._entries)!r})"


EMPTY_TABLE = SelectorTable()


def load_sites(path: str | Path, *, missing_ok: bool = True) -> SelectorTable:
    """Load a :class:`SelectorTable` from a TOML or YAML file.

    Args:
        path:       Path to ``sites.toml`` / ``sites.yaml``.
        missing_ok: Return an empty table when the file does not exist.

    Raises:
        ConfigError: On unreadable files, parse errors, invalid domain keys
            or invalid CSS selectors.
    """
    path = Path(path)
    if not path.exists():
        if missing_ok:
            logger.debug("No sites file at %s; automatic extraction only", path)
            return EMPTY_TABLE
        raise ConfigError("sites file not found", path)

    table = SelectorTable.from_mapping(read_structured(path), path=path)
    logger.info("Loaded manual selectors for %d domain(s) from %s", len(table), path)
    return table
