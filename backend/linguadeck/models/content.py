"""Upstream learning content that flashcards are derived from."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field, SQLModel

from ..core.clock import utcnow


class Language(SQLModel, table=True):
    """A language profile; removing it removes everything studied in it."""

    code: str = Field(primary_key=True)
    name: str
    direction: str = Field(default="ltr")  # ltr|rtl
    created_at: datetime = Field(default_factory=utcnow)


class Vocab(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    language_code: str = Field(foreign_key="language.code", ondelete="CASCADE", index=True)

    english: str
    # Empty until the word has been translated
    target: str = Field(default="")
    transliteration: str | None = Field(default=None)
    part_of_speech: str | None = Field(default=None)
    notes: str | None = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Verb(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    language_code: str = Field(foreign_key="language.code", ondelete="CASCADE", index=True)

    infinitive: str
    root: str | None = Field(default=None)
    form: str | None = Field(default=None)
    meaning: str | None = Field(default=None)
    masdar: str | None = Field(default=None)
    masdar_voweled: str | None = Field(default=None)
    verb_type: str | None = Field(default=None)

    ai_generated: bool = Field(default=False)
    ai_model: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)


class Conjugation(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    verb_id: int = Field(foreign_key="verb.id", ondelete="CASCADE", index=True)

    tense: str
    person: str
    conjugated: str
    voweled: str | None = Field(default=None)
    transliteration: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
