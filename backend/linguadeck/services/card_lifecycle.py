"""Keeps flashcards in step with the vocabulary and conjugation they come from."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlmodel import Session, select

from ..core.clock import utcnow
from ..core.db import storage_guard
from ..models.content import Conjugation, Language, Verb, Vocab
from ..models.flashcard import CardType, Flashcard
from .card_store import CardStore
from .payloads import (
    ConjugationItem,
    ParseFailure,
    ParseSuccess,
    parse_conjugations,
    parse_translations,
)

logger = logging.getLogger(__name__)


def vocab_card_text(vocab: Vocab) -> tuple[str, str]:
    back = vocab.target.strip()
    if vocab.transliteration:
        back = f"{back} ({vocab.transliteration})"
    return vocab.english, back


def conjugation_card_text(verb: Verb, conjugation: Conjugation) -> tuple[str, str]:
    front = f"{verb.infinitive} ({conjugation.tense}, {conjugation.person})"
    return front, conjugation.voweled or conjugation.conjugated


class CardLifecycleManager:
    """Reacts to content events. Every operation is idempotent.

    A card whose origin row is gone is never an error here: the storage
    layer's cascades already removed it, so there is nothing left to do.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.store = CardStore(session)

    # ------------------------------------------------------------------
    # Content events
    # ------------------------------------------------------------------

    def on_vocab_translated(self, vocab_id: int, now: datetime | None = None) -> Flashcard | None:
        with storage_guard(self.session, "on_vocab_translated"):
            vocab = self.session.get(Vocab, vocab_id)
        if vocab is None:
            logger.debug("Vocab %s is gone; no card to sync", vocab_id)
            return None
        if not vocab.target.strip():
            return None
        front, back = vocab_card_text(vocab)
        card = Flashcard(
            language_code=vocab.language_code,
            card_type=CardType.VOCAB,
            vocab_id=vocab.id,
            front=front,
            back=back,
        )
        return self.store.upsert(card, now)

    def on_conjugations_generated(self, verb_id: int, now: datetime | None = None) -> list[Flashcard]:
        with storage_guard(self.session, "on_conjugations_generated"):
            verb = self.session.get(Verb, verb_id)
            if verb is None:
                logger.debug("Verb %s is gone; no cards to sync", verb_id)
                return []
            conjugations = self.session.exec(
                select(Conjugation).where(Conjugation.verb_id == verb_id).order_by(Conjugation.id)
            ).all()

        cards = []
        for conjugation in conjugations:
            front, back = conjugation_card_text(verb, conjugation)
            card = self.store.upsert(
                Flashcard(
                    language_code=verb.language_code,
                    card_type=CardType.CONJUGATION,
                    conjugation_id=conjugation.id,
                    front=front,
                    back=back,
                ),
                now,
            )
            if card is not None:
                cards.append(card)
        return cards

    # ------------------------------------------------------------------
    # Content mutations that raise those events
    # ------------------------------------------------------------------

    def set_translation(
        self,
        vocab_id: int,
        target: str,
        transliteration: str | None = None,
        part_of_speech: str | None = None,
        now: datetime | None = None,
    ) -> Flashcard | None:
        target = target.strip()
        if not target:
            # A blank translation never clears a word; its card stays as it was
            return self.store.find_by_origin(vocab_id=vocab_id)

        with storage_guard(self.session, "set_translation"):
            vocab = self.session.get(Vocab, vocab_id)
            if vocab is None:
                return None
            vocab.target = target
            vocab.transliteration = transliteration or None
            if part_of_speech:
                vocab.part_of_speech = part_of_speech
            vocab.updated_at = now or utcnow()
            self.session.add(vocab)
            self.session.commit()
        return self.on_vocab_translated(vocab_id, now)

    def apply_translations(
        self, vocab_ids: list[int], raw_text: str, now: datetime | None = None
    ) -> ParseSuccess[int] | ParseFailure:
        """Apply one batch of AI translations, in the order the words were sent."""
        parsed = parse_translations(raw_text)
        if isinstance(parsed, ParseFailure):
            logger.warning("Rejected translation payload: %s", parsed.error)
            return parsed
        items = parsed.value
        if len(items) != len(vocab_ids):
            logger.warning("Translation payload had %d item(s) for %d word(s)", len(items), len(vocab_ids))
            return ParseFailure("AI returned unexpected number of translations")

        translated = 0
        for vocab_id, item in zip(vocab_ids, items, strict=True):
            if not item.target:
                continue
            if self.set_translation(vocab_id, item.target, item.transliteration, item.part_of_speech, now):
                translated += 1
        return ParseSuccess(translated)

    def regenerate_conjugations(
        self, verb_id: int, raw_text: str, model: str | None = None, now: datetime | None = None
    ) -> ParseSuccess[list[Flashcard]] | ParseFailure:
        """Replace a verb's conjugation table from an AI payload.

        The payload is validated before any row is touched. Entries are
        matched on (tense, person): surviving entries are updated in place so
        their cards keep their scheduling state, vanished entries are deleted
        and take their cards and history with them, new entries get fresh
        cards.
        """
        parsed = parse_conjugations(raw_text)
        if isinstance(parsed, ParseFailure):
            logger.warning("Rejected conjugation payload for verb %s: %s", verb_id, parsed.error)
            return parsed

        with storage_guard(self.session, "regenerate_conjugations"):
            verb = self.session.get(Verb, verb_id)
            if verb is None:
                logger.debug("Verb %s is gone; ignoring regenerated conjugations", verb_id)
                return ParseSuccess([])

            incoming: dict[tuple[str, str], ConjugationItem] = {
                (item.tense, item.person): item for item in parsed.value.conjugations
            }
            existing = {
                (c.tense, c.person): c
                for c in self.session.exec(select(Conjugation).where(Conjugation.verb_id == verb_id)).all()
            }

            kept = added = removed = 0
            for key, item in incoming.items():
                conjugation = existing.get(key)
                if conjugation is None:
                    conjugation = Conjugation(verb_id=verb_id, tense=item.tense, person=item.person, conjugated="")
                    added += 1
                else:
                    kept += 1
                conjugation.conjugated = item.conjugated
                conjugation.voweled = item.voweled or None
                conjugation.transliteration = item.transliteration or None
                self.session.add(conjugation)

            for key, conjugation in existing.items():
                if key not in incoming:
                    self.session.delete(conjugation)
                    removed += 1

            metadata = parsed.value.metadata
            if metadata is not None:
                verb.root = metadata.root or verb.root
                verb.meaning = metadata.meaning or None
                verb.masdar = metadata.masdar or None
                verb.masdar_voweled = metadata.masdar_voweled or None
                verb.verb_type = metadata.verb_type or None
            verb.ai_generated = True
            verb.ai_model = model or verb.ai_model
            self.session.add(verb)
            self.session.commit()

        logger.info(
            "Reconciled conjugations for verb %s: %d kept, %d added, %d removed",
            verb_id,
            kept,
            added,
            removed,
        )
        return ParseSuccess(self.on_conjugations_generated(verb_id, now))

    # ------------------------------------------------------------------
    # Removal (cards and history follow through ON DELETE CASCADE)
    # ------------------------------------------------------------------

    def remove_vocab(self, vocab_id: int) -> bool:
        return self._remove(Vocab, vocab_id)

    def remove_verb(self, verb_id: int) -> bool:
        return self._remove(Verb, verb_id)

    def remove_language(self, code: str) -> bool:
        return self._remove(Language, code)

    def _remove(self, model: type, key: int | str) -> bool:
        name = model.__name__.lower()
        with storage_guard(self.session, f"remove {name}"):
            row = self.session.get(model, key)
            if row is None:
                return False
            self.session.delete(row)
            self.session.commit()
        logger.info("Deleted %s %s", name, key)
        return True
