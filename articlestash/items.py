"""Pydantic models shared by the extraction pipeline.

Everything here is immutable: selector entries are loaded once at startup,
per-field outcomes and resolutions are produced once per request, and an
:class:`Article` is frozen after normalization.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

import soupsieve
from pydantic import BaseModel, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ArticleField(StrEnum):
    """The four extractable article fields, in resolution order."""

    TITLE = "title"
    BODY = "body"
    AUTHORS = "authors"
    DATE = "date"


class FieldSource(StrEnum):
    """Which strategy supplied a field's value."""

    MANUAL = "manual"
    AUTOMATIC = "automatic"
    UNRESOLVED = "unresolved"


# ---------------------------------------------------------------------------
# Manual selector configuration
# ---------------------------------------------------------------------------

class SelectorEntry(BaseModel):
    """CSS selectors configured for one domain.  Any subset may be absent."""

    model_config = {"frozen": True, "extra": "forbid"}

    title: str | None = None
    body: str | None = None
    authors: str | None = None
    date: str | None = None

    @field_validator("title", "body", "authors", "date", mode="before")
    @classmethod
    def compile_selector(cls, v: Any) -> Any:
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError(f"selector must be a string, got {type(v).__name__}")
        v = v.strip()
        if not v:
            return None
        try:
            soupsieve.compile(v)
        except soupsieve.SelectorSyntaxError as exc:
            raise ValueError(f"invalid CSS selector {v!r}: {exc}") from exc
        return v

    def selector_for(self, field: ArticleField) -> str | None:
        return getattr(self, ArticleField(field).value)

    @property
    def is_empty(self) -> bool:
        return all(self.selector_for(f) is None for f in ArticleField)


# ---------------------------------------------------------------------------
# Per-field outcomes
# ---------------------------------------------------------------------------

class FieldOutcome(BaseModel):
    """Tagged result of resolving one field: manual, automatic or unresolved.

    A manual value may be empty or whitespace only: the operator's selector
    matched, so the match is authoritative.  The normalizer decides later
    whether the content is usable.
    """

    model_config = {"frozen": True}

    source: FieldSource
    value: str | None = None

    @model_validator(mode="after")
    def check_value(self) -> FieldOutcome:
        if self.source is FieldSource.UNRESOLVED:
            if self.value is not None:
                raise ValueError("an unresolved outcome cannot carry a value")
        elif self.value is None:
            raise ValueError(f"a {self.source} outcome requires a value")
        return self

    @classmethod
    def manual(cls, value: str) -> FieldOutcome:
        return cls(source=FieldSource.MANUAL, value=value)

    @classmethod
    def automatic(cls, value: str) -> FieldOutcome:
        return cls(source=FieldSource.AUTOMATIC, value=value)

    @classmethod
    def unresolved(cls) -> FieldOutcome:
        return cls(source=FieldSource.UNRESOLVED)

    @property
    def found(self) -> bool:
        return self.source is not FieldSource.UNRESOLVED


class SelectorNotFound(BaseModel):
    """A configured selector matched nothing and automatic fallback was used."""

    model_config = {"frozen": True}

    field: ArticleField
    selector: str


class AutoExtraction(BaseModel):
    """Whole-document output of an automatic extractor."""

    model_config = {"frozen": True}

    title: str | None = None
    body: str | None = None
    authors: str | None = None
    date_raw: str | None = None
    method: str | None = None  # e.g. "readability" | "trafilatura" | "dom_heuristic"

    def get(self, field: ArticleField) -> str | None:
        """Return the value for *field*; blank strings count as not found."""
        value = {
            ArticleField.TITLE: self.title,
            ArticleField.BODY: self.body,
            ArticleField.AUTHORS: self.authors,
            ArticleField.DATE: self.date_raw,
        }[ArticleField(field)]
        if value is None or not value.strip():
            return None
        return value


class Resolution(BaseModel):
    """Per-field outcomes of one resolution, with diagnostics."""

    model_config = {"frozen": True}

    domain: str
    title: FieldOutcome
    body: FieldOutcome
    authors: FieldOutcome
    date: FieldOutcome
    selector_misses: tuple[SelectorNotFound, ...] = ()
    auto_invoked: bool = False
    auto_method: str | None = None

    def __getitem__(self, field: ArticleField) -> FieldOutcome:
        return getattr(self, ArticleField(field).value)

    @property
    def unresolved_fields(self) -> tuple[ArticleField, ...]:
        return tuple(f for f in ArticleField if not self[f].found)


# ---------------------------------------------------------------------------
# Canonical article
# ---------------------------------------------------------------------------

class Article(BaseModel):
    """Canonical, format-independent article record handed to output sinks."""

    model_config = {"frozen": True}

    url: str = ""
    source_domain: str

    title: str | None = None
    body: str | None = None
    authors: tuple[str, ...] = ()
    published_at: datetime | None = None
    published_raw: str | None = None  # kept for diagnostics when parsing fails

    # Provenance after normalization
    sources: dict[ArticleField, FieldSource] = Field(default_factory=dict)

    @property
    def is_usable(self) -> bool:
        return self.title is not None and self.body is not None

    @property
    def unresolved_fields(self) -> tuple[ArticleField, ...]:
        missing = {
            ArticleField.TITLE: self.title is None,
            ArticleField.BODY: self.body is None,
            ArticleField.AUTHORS: not self.authors,
            ArticleField.DATE: self.published_at is None,
        }
        return tuple(f for f in ArticleField if missing[f])
