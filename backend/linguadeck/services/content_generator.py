"""Prompts that ask the completion provider for flashcard source content."""

from __future__ import annotations

import json

from ..models.content import Language, Verb
from .completion import CompletionClient

TRANSLATE_PROMPT = (
    "You are a {language} language expert and translator. Translate English words "
    "to {language} with transliterations and part-of-speech labels. All {language} "
    "text must carry full diacritical marks.\n\n"
    "Respond ONLY with a JSON array, one object per word, in the same order:\n"
    '[{{"english": "...", "target": "...", "transliteration": "...", "partOfSpeech": "noun"}}]\n'
)

CONJUGATION_PROMPT = (
    "You are a {language} language expert. You generate accurate verb conjugation "
    "tables with metadata. Voweled fields must carry full diacritical marks.\n\n"
    "Respond ONLY with a JSON object:\n"
    '{{"metadata": {{"root": "...", "meaning": "...", "masdar": "...", '
    '"masdarVoweled": "...", "verbType": "..."}}, '
    '"conjugations": [{{"tense": "past", "person": "1s", "conjugated": "...", '
    '"voweled": "...", "transliteration": "..."}}]}}\n'
    "Generate one entry for every tense and person combination that exists.\n"
)


class ContentGenerator:
    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    @property
    def model(self) -> str:
        return self.client.name

    async def translate(self, words: list[str], language: Language) -> str:
        word_list = "\n".join(f"{i + 1}. {w}" for i, w in enumerate(words))
        return await self.client.complete(
            f"Translate the following English words to {language.name}:\n\n{word_list}",
            TRANSLATE_PROMPT.format(language=language.name),
        )

    async def conjugate(self, verb: Verb, language: Language) -> str:
        details = {"verb": verb.infinitive, "root": verb.root, "form": verb.form}
        return await self.client.complete(
            "Generate the full conjugation table for this verb:\n"
            + json.dumps({k: v for k, v in details.items() if v}, ensure_ascii=False),
            CONJUGATION_PROMPT.format(language=language.name),
        )
