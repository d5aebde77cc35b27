"""Languages, vocabulary and verbs; every mutation keeps flashcards in step."""

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlmodel import select

from ..core.config import get_config
from ..core.exceptions import CompletionError
from ..models.content import Conjugation, Language, Verb, Vocab
from ..services.card_lifecycle import CardLifecycleManager
from ..services.content_generator import ContentGenerator
from ..services.payloads import ParseFailure
from .deps import get_content_generator, get_lifecycle
from .flashcard_routes import flashcard_to_dict

logger = logging.getLogger(__name__)


class LanguageCreate(BaseModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    direction: Literal["ltr", "rtl"] = "ltr"


class VocabCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    language_code: str = Field(alias="languageCode")
    english: str = Field(min_length=1)
    target: str = ""
    transliteration: str | None = None
    part_of_speech: str | None = Field(default=None, alias="partOfSpeech")
    notes: str | None = None


class TranslationUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target: str
    transliteration: str | None = None
    part_of_speech: str | None = Field(default=None, alias="partOfSpeech")


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    language_code: str = Field(alias="languageCode")
    ids: list[int] | None = None


class VerbCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    language_code: str = Field(alias="languageCode")
    infinitive: str = Field(min_length=1)
    root: str | None = None
    form: str | None = None


def create_content_router() -> APIRouter:
    router = APIRouter(prefix="/api", tags=["content"])
    limiter = Limiter(key_func=get_remote_address)

    def _language(lifecycle: CardLifecycleManager, code: str) -> Language:
        language = lifecycle.session.get(Language, code)
        if not language:
            raise HTTPException(status_code=404, detail="Language not found")
        return language

    # ------------------------------------------------------------------
    # Languages
    # ------------------------------------------------------------------

    @router.get("/languages")
    async def list_languages(lifecycle: CardLifecycleManager = Depends(get_lifecycle)) -> list[dict[str, Any]]:
        languages = lifecycle.session.exec(select(Language).order_by(Language.code)).all()
        return [{"code": lang.code, "name": lang.name, "direction": lang.direction} for lang in languages]

    @router.post("/languages")
    async def create_language(
        body: LanguageCreate, lifecycle: CardLifecycleManager = Depends(get_lifecycle)
    ) -> dict[str, Any]:
        session = lifecycle.session
        if session.get(Language, body.code):
            raise HTTPException(status_code=400, detail="Language already exists")
        language = Language(code=body.code, name=body.name, direction=body.direction)
        session.add(language)
        session.commit()
        return {"code": language.code, "name": language.name, "direction": language.direction}

    @router.delete("/languages/{code}")
    async def delete_language(code: str, lifecycle: CardLifecycleManager = Depends(get_lifecycle)) -> dict[str, str]:
        if not lifecycle.remove_language(code):
            raise HTTPException(status_code=404, detail="Language not found")
        return {"status": "deleted"}

    # ------------------------------------------------------------------
    # Vocabulary
    # ------------------------------------------------------------------

    @router.post("/vocab")
    async def create_vocab(
        body: VocabCreate, lifecycle: CardLifecycleManager = Depends(get_lifecycle)
    ) -> dict[str, Any]:
        _language(lifecycle, body.language_code)
        session = lifecycle.session
        vocab = Vocab(
            language_code=body.language_code,
            english=body.english.strip(),
            target=body.target.strip(),
            transliteration=body.transliteration,
            part_of_speech=body.part_of_speech,
            notes=body.notes,
        )
        session.add(vocab)
        session.commit()
        session.refresh(vocab)
        card = lifecycle.on_vocab_translated(vocab.id)
        return {**_vocab_to_dict(vocab), "flashcard": flashcard_to_dict(card) if card else None}

    @router.put("/vocab/{vocab_id}/translation")
    async def update_translation(
        vocab_id: int, body: TranslationUpdate, lifecycle: CardLifecycleManager = Depends(get_lifecycle)
    ) -> dict[str, Any]:
        if not lifecycle.session.get(Vocab, vocab_id):
            raise HTTPException(status_code=404, detail="Vocab not found")
        if not body.target.strip():
            raise HTTPException(status_code=400, detail="Translation target must not be empty")
        card = lifecycle.set_translation(vocab_id, body.target, body.transliteration, body.part_of_speech)
        vocab = lifecycle.session.get(Vocab, vocab_id)
        return {**_vocab_to_dict(vocab), "flashcard": flashcard_to_dict(card) if card else None}

    @router.delete("/vocab/{vocab_id}")
    async def delete_vocab(vocab_id: int, lifecycle: CardLifecycleManager = Depends(get_lifecycle)) -> dict[str, str]:
        if not lifecycle.remove_vocab(vocab_id):
            raise HTTPException(status_code=404, detail="Vocab not found")
        return {"status": "deleted"}

    @router.post("/vocab/translate")
    @limiter.limit("10/minute")
    async def translate_vocab(
        request: Request,
        body: TranslateRequest,
        lifecycle: CardLifecycleManager = Depends(get_lifecycle),
        generator: ContentGenerator = Depends(get_content_generator),
    ) -> dict[str, Any]:
        language = _language(lifecycle, body.language_code)
        statement = select(Vocab).where(Vocab.language_code == body.language_code)
        if body.ids:
            statement = statement.where(Vocab.id.in_(body.ids))
        else:
            statement = statement.where(Vocab.target == "")
        words = lifecycle.session.exec(statement.order_by(Vocab.id)).all()
        if not words:
            return {"translated": 0}

        batch_size = get_config().srs.translate_batch_size
        translated = 0
        last_error: str | None = None
        for start in range(0, len(words), batch_size):
            batch = words[start : start + batch_size]
            batch_ids = [w.id for w in batch]
            try:
                raw = await generator.translate([w.english for w in batch], language)
            except CompletionError as exc:
                last_error = str(exc)
                continue
            result = lifecycle.apply_translations(batch_ids, raw)
            if isinstance(result, ParseFailure):
                last_error = result.error
                continue
            translated += result.value

        if translated == 0 and last_error:
            raise HTTPException(status_code=502, detail=last_error)
        logger.info("Translated %d of %d word(s) for %s", translated, len(words), body.language_code)
        return {"translated": translated}

    # ------------------------------------------------------------------
    # Verbs & conjugations
    # ------------------------------------------------------------------

    @router.post("/verbs")
    async def create_verb(
        body: VerbCreate, lifecycle: CardLifecycleManager = Depends(get_lifecycle)
    ) -> dict[str, Any]:
        _language(lifecycle, body.language_code)
        session = lifecycle.session
        verb = Verb(
            language_code=body.language_code,
            infinitive=body.infinitive.strip(),
            root=body.root,
            form=body.form,
        )
        session.add(verb)
        session.commit()
        session.refresh(verb)
        return {"verb": verb.model_dump(mode="json"), "conjugations": []}

    @router.get("/verbs/{verb_id}")
    async def get_verb(verb_id: int, lifecycle: CardLifecycleManager = Depends(get_lifecycle)) -> dict[str, Any]:
        verb = lifecycle.session.get(Verb, verb_id)
        if not verb:
            raise HTTPException(status_code=404, detail="Verb not found")
        return _verb_with_conjugations(lifecycle, verb)

    @router.post("/verbs/{verb_id}/conjugations")
    @limiter.limit("10/minute")
    async def generate_conjugations(
        request: Request,
        verb_id: int,
        lifecycle: CardLifecycleManager = Depends(get_lifecycle),
        generator: ContentGenerator = Depends(get_content_generator),
    ) -> dict[str, Any]:
        verb = lifecycle.session.get(Verb, verb_id)
        if not verb:
            raise HTTPException(status_code=404, detail="Verb not found")
        language = _language(lifecycle, verb.language_code)

        try:
            raw = await generator.conjugate(verb, language)
        except CompletionError as exc:
            raise HTTPException(status_code=502, detail=f"AI generation failed: {exc}") from exc

        result = lifecycle.regenerate_conjugations(verb_id, raw, model=generator.model)
        if isinstance(result, ParseFailure):
            raise HTTPException(status_code=502, detail=f"AI generation failed: {result.error}")

        verb = lifecycle.session.get(Verb, verb_id)
        if not verb:
            raise HTTPException(status_code=404, detail="Verb not found")
        return {**_verb_with_conjugations(lifecycle, verb), "flashcards": len(result.value)}

    @router.delete("/verbs/{verb_id}")
    async def delete_verb(verb_id: int, lifecycle: CardLifecycleManager = Depends(get_lifecycle)) -> dict[str, bool]:
        if not lifecycle.remove_verb(verb_id):
            raise HTTPException(status_code=404, detail="Verb not found")
        return {"success": True}

    return router


def _vocab_to_dict(vocab: Vocab) -> dict[str, Any]:
    return {
        "id": vocab.id,
        "languageCode": vocab.language_code,
        "english": vocab.english,
        "target": vocab.target,
        "transliteration": vocab.transliteration,
        "partOfSpeech": vocab.part_of_speech,
    }


def _verb_with_conjugations(lifecycle: CardLifecycleManager, verb: Verb) -> dict[str, Any]:
    conjugations = lifecycle.session.exec(
        select(Conjugation).where(Conjugation.verb_id == verb.id).order_by(Conjugation.id)
    ).all()
    return {
        "verb": verb.model_dump(mode="json"),
        "conjugations": [c.model_dump(mode="json") for c in conjugations],
    }
