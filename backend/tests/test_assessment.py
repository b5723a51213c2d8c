import json

import pytest

from coach.assessment import (
	decode_assessment,
	decode_text,
	decode_topics,
	decode_vocabulary,
	parse_json_block,
)
from coach.errors import DecodeError
from coach.schemas import AssessmentResult


def test_decode_full_payload(assessment_payload):
	result = decode_assessment(assessment_payload)
	assert result.ok
	assessment = result.value
	assert isinstance(assessment, AssessmentResult)
	assert assessment.overall_score == 78
	assert assessment.lexicon.vocab_usage_check[0].comment is None
	assert assessment.lexicon.vocab_usage_check[1].comment == "Needs an object."
	assert assessment.lexicon.collocation_corrections[0].better_alternative == "devise a plan"
	assert assessment.grammar.corrections[0].correction == "in the internet age"


def test_missing_lexicon_score_is_decode_error(assessment_payload):
	del assessment_payload["lexicon"]["score"]
	result = decode_assessment(assessment_payload)
	assert not result.ok
	assert isinstance(result.error, DecodeError)
	assert result.error.field == "lexicon.score"


@pytest.mark.parametrize("path", [
	("overallScore",),
	("generalAdvice",),
	("syntax", "comment"),
	("syntax", "examples"),
	("grammar", "corrections"),
	("lexicon", "vocabUsageCheck"),
])
def test_missing_required_field_names_path(assessment_payload, path):
	target = assessment_payload
	for key in path[:-1]:
		target = target[key]
	del target[path[-1]]
	result = decode_assessment(assessment_payload)
	assert not result.ok
	assert result.error.field == ".".join(path)


def test_missing_collocation_corrections_defaults_to_empty(assessment_payload):
	del assessment_payload["lexicon"]["collocationCorrections"]
	result = decode_assessment(assessment_payload)
	assert result.ok
	assert result.value.lexicon.collocation_corrections == []


def test_null_collocation_corrections_defaults_to_empty(assessment_payload):
	assessment_payload["lexicon"]["collocationCorrections"] = None
	assert decode_assessment(assessment_payload).value.lexicon.collocation_corrections == []


def test_malformed_array_element_is_rejected(assessment_payload):
	del assessment_payload["grammar"]["corrections"][0]["reason"]
	result = decode_assessment(assessment_payload)
	assert result.error.field == "grammar.corrections.0.reason"


def test_non_numeric_score_is_rejected(assessment_payload):
	assessment_payload["syntax"]["score"] = "excellent"
	assert decode_assessment(assessment_payload).error.field == "syntax.score"


@pytest.mark.parametrize("path, value, field", [
	(("overallScore",), True, "overallScore"),
	(("syntax", "score"), "85", "syntax.score"),
	(("grammar", "score"), None, "grammar.score"),
])
def test_scores_are_not_coerced(assessment_payload, path, value, field):
	target = assessment_payload
	for key in path[:-1]:
		target = target[key]
	target[path[-1]] = value
	result = decode_assessment(assessment_payload)
	assert not result.ok
	assert result.error.field == field


def test_integer_score_is_accepted(assessment_payload):
	assessment_payload["lexicon"]["score"] = 78
	assessment = decode_assessment(assessment_payload).value
	assert assessment.lexicon.score == 78.0
	assert isinstance(assessment.lexicon.score, float)


def test_used_correctly_must_be_boolean(assessment_payload):
	assessment_payload["lexicon"]["vocabUsageCheck"][0]["usedCorrectly"] = "no"
	result = decode_assessment(assessment_payload)
	assert result.error.field == "lexicon.vocabUsageCheck.0.usedCorrectly"


def test_non_object_payload_is_rejected():
	result = decode_assessment(["not", "an", "object"])
	assert not result.ok
	assert result.error.field == "<root>"


def test_overall_score_passes_through_unchanged(assessment_payload):
	assessment_payload["overallScore"] = 91.5
	assert decode_assessment(assessment_payload).value.overall_score == 91.5


def test_result_is_immutable(assessment_payload):
	assessment = decode_assessment(assessment_payload).value
	with pytest.raises(Exception):
		assessment.overall_score = 10


def test_unwrap_raises_decode_error(assessment_payload):
	del assessment_payload["overallScore"]
	with pytest.raises(DecodeError):
		decode_assessment(assessment_payload).unwrap()


def test_parse_json_block_handles_fences_and_prose():
	text = "Here you go:\n```json\n[\"a\", \"b\"]\n```\nEnjoy!"
	assert parse_json_block(text).value == ["a", "b"]
	assert parse_json_block('Sure! {"x": 1} done').value == {"x": 1}


@pytest.mark.parametrize("text", [None, "", "   ", "not json at all"])
def test_parse_json_block_failure(text):
	result = parse_json_block(text)
	assert not result.ok
	assert result.error.field == "<root>"


def test_decode_vocabulary_reads_pos_alias():
	result = decode_vocabulary([
		{"word": "austerity", "pos": "n.", "definition": "紧缩"},
		{"word": " curate ", "pos": "v.", "definition": "策划"},
	])
	assert result.ok
	assert [(i.word, i.part_of_speech) for i in result.value] == [("austerity", "n."), ("curate", "v.")]


def test_decode_vocabulary_unwraps_single_key_object():
	result = decode_vocabulary({"vocabulary": [{"word": "solitude", "pos": "n.", "definition": "独处"}]})
	assert [i.word for i in result.value] == ["solitude"]


def test_decode_vocabulary_rejects_empty_and_blank_words():
	assert not decode_vocabulary([]).ok
	assert decode_vocabulary([{"word": "  ", "pos": "n.", "definition": ""}]).error.field == "0.word"


def test_decode_topics():
	assert decode_topics(["A", " B ", ""]).value == ["A", "B"]
	assert not decode_topics([1, 2]).ok
	assert not decode_topics("A").ok


def test_decode_text_chains_parse_and_decode(assessment_payload):
	result = decode_text(json.dumps(assessment_payload), decode_assessment)
	assert result.ok
	bad = decode_text("{}", decode_assessment)
	assert not bad.ok
	assert bad.error.field == "overallScore"
