"""Strict schemas for the JSON the completion provider hands back."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

T = TypeVar("T")

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)


class TranslationItem(_Payload):
    english: str
    target: str
    transliteration: str | None = None
    part_of_speech: str | None = Field(default=None, alias="partOfSpeech")


class VerbMetadata(_Payload):
    root: str | None = None
    meaning: str | None = None
    masdar: str | None = None
    masdar_voweled: str | None = Field(default=None, alias="masdarVoweled")
    verb_type: str | None = Field(default=None, alias="verbType")


class ConjugationItem(_Payload):
    tense: str = Field(min_length=1)
    person: str = Field(min_length=1)
    conjugated: str = Field(min_length=1)
    voweled: str | None = None
    transliteration: str | None = None


class ConjugationPayload(_Payload):
    metadata: VerbMetadata | None = None
    conjugations: list[ConjugationItem] = Field(min_length=1)

    @field_validator("conjugations")
    @classmethod
    def unique_forms(cls, items: list[ConjugationItem]) -> list[ConjugationItem]:
        seen: set[tuple[str, str]] = set()
        for item in items:
            key = (item.tense, item.person)
            if key in seen:
                raise ValueError(f"duplicate conjugation for {item.tense}/{item.person}")
            seen.add(key)
        return items



@dataclass(frozen=True)
class ParseSuccess(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True)
class ParseFailure:
    error: str
    ok: bool = False


def strip_code_fences(raw: str) -> str:
    return _FENCE.sub("", raw.strip()).strip()


def _load_json(raw: str, opener: str, closer: str) -> Any:
    text = strip_code_fences(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            return json.loads(text[start : end + 1])
        raise


_translations = TypeAdapter(list[TranslationItem])


def parse_translations(raw: str) -> ParseSuccess[list[TranslationItem]] | ParseFailure:
    try:
        return ParseSuccess(_translations.validate_python(_load_json(raw, "[", "]")))
    except json.JSONDecodeError:
        return ParseFailure("Failed to parse AI response")
    except ValidationError as exc:
        return ParseFailure(f"AI response did not match the translation schema ({exc.error_count()} error(s))")


def parse_conjugations(raw: str) -> ParseSuccess[ConjugationPayload] | ParseFailure:
    try:
        return ParseSuccess(ConjugationPayload.model_validate(_load_json(raw, "{", "}")))
    except json.JSONDecodeError:
        return ParseFailure("Failed to parse AI response")
    except ValidationError as exc:
        return ParseFailure(f"AI response did not match the conjugation schema ({exc.error_count()} error(s))")
