from linguadeck.services.payloads import (
    ParseFailure,
    ParseSuccess,
    parse_conjugations,
    parse_translations,
    strip_code_fences,
)


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("```\n[]\n```") == "[]"
    assert strip_code_fences("  []  ") == "[]"


def test_translations_with_surrounding_chatter():
    raw = 'Here you go:\n[{"english": "water", "target": "ماء", "partOfSpeech": "noun"}]\nEnjoy!'
    result = parse_translations(raw)
    assert isinstance(result, ParseSuccess)
    assert result.ok
    assert result.value[0].target == "ماء"
    assert result.value[0].part_of_speech == "noun"


def test_translations_missing_target():
    result = parse_translations('[{"english": "water"}]')
    assert isinstance(result, ParseFailure)
    assert not result.ok


def test_conjugations_need_at_least_one_entry():
    assert isinstance(parse_conjugations('{"conjugations": []}'), ParseFailure)
    assert isinstance(parse_conjugations('{"metadata": {}}'), ParseFailure)


def test_conjugation_entries_need_text():
    raw = '{"conjugations": [{"tense": "past", "person": "1s", "conjugated": "  "}]}'
    assert isinstance(parse_conjugations(raw), ParseFailure)


def test_conjugations_accept_camel_case_metadata():
    raw = '{"metadata": {"masdarVoweled": "كِتَابَة", "verbType": "sound"}, "conjugations": [{"tense": "past", "person": "3sm", "conjugated": "كتب"}]}'
    result = parse_conjugations(raw)
    assert isinstance(result, ParseSuccess)
    assert result.value.metadata.masdar_voweled == "كِتَابَة"
    assert result.value.conjugations[0].voweled is None


def test_unparseable_payload():
    assert parse_conjugations("no json here") == ParseFailure("Failed to parse AI response")


def test_conjugations_reject_repeated_tense_and_person():
    raw = (
        '{"conjugations": ['
        '{"tense": "past", "person": "3sm", "conjugated": "كتب"},'
        '{"tense": "past", "person": "3sm", "conjugated": "كتبت"}'
        "]}"
    )
    result = parse_conjugations(raw)
    assert isinstance(result, ParseFailure)
    assert "conjugation schema" in result.error
