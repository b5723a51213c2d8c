import json

import httpx
import pytest

from coach.coach_service import CoachService
from coach.errors import DecodeError, ServiceError
from coach.gemini_client import GeminiClient


def _service_replying(text=None, status=200):
	prompts = []

	def handler(request: httpx.Request) -> httpx.Response:
		body = json.loads(request.content)
		prompts.append(body["contents"][0]["parts"][0]["text"])
		if status != 200:
			return httpx.Response(status)
		return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})

	def factory():
		return GeminiClient(api_key="test-key", transport=httpx.MockTransport(handler))

	return CoachService(client_factory=factory), prompts


@pytest.mark.asyncio
async def test_suggest_topics_limits_to_five():
	service, prompts = _service_replying(json.dumps([f"Topic {i}" for i in range(7)]))
	topics = await service.suggest_topics("architecture")
	assert topics == [f"Topic {i}" for i in range(5)]
	assert "architecture" in prompts[0]


@pytest.mark.asyncio
async def test_suggest_topics_blank_seed_uses_general():
	service, prompts = _service_replying(json.dumps(["A"]))
	await service.suggest_topics("  ")
	assert '"General"' in prompts[0]


@pytest.mark.asyncio
async def test_generate_vocabulary_decodes_items():
	payload = [{"word": f"word{i}", "pos": "n.", "definition": "释义"} for i in range(13)]
	service, prompts = _service_replying(json.dumps(payload, ensure_ascii=False))
	items = await service.generate_vocabulary("Digital Minimalism", "C2")
	assert len(items) == 13
	assert "Digital Minimalism" in prompts[0] and "C2" in prompts[0]


@pytest.mark.asyncio
async def test_generate_vocabulary_empty_is_decode_error():
	service, _ = _service_replying("[]")
	with pytest.raises(DecodeError):
		await service.generate_vocabulary("Topic", "C1")


@pytest.mark.asyncio
async def test_evaluate_writing_decodes_result(assessment_payload):
	service, prompts = _service_replying("```json\n" + json.dumps(assessment_payload) + "\n```")
	result = await service.evaluate_writing("Digital Minimalism", ["austerity", "curate"], "I curated my feed.")
	assert result.overall_score == 78
	assert '["austerity", "curate"]' in prompts[0]
	assert "I curated my feed." in prompts[0]


@pytest.mark.asyncio
async def test_evaluate_writing_missing_field(assessment_payload):
	del assessment_payload["syntax"]["comment"]
	service, _ = _service_replying(json.dumps(assessment_payload))
	with pytest.raises(DecodeError) as info:
		await service.evaluate_writing("T", ["w"], "text")
	assert info.value.field == "syntax.comment"


@pytest.mark.asyncio
async def test_transport_failure_is_service_error():
	service, _ = _service_replying(status=500)
	with pytest.raises(ServiceError) as info:
		await service.evaluate_writing("T", ["w"], "text")
	assert not isinstance(info.value, DecodeError)


@pytest.mark.asyncio
async def test_unconfigured_client_is_service_error():
	def factory():
		raise ValueError("GEMINI_API_KEY is not configured")

	with pytest.raises(ServiceError):
		await CoachService(client_factory=factory).suggest_topics("x")


@pytest.mark.asyncio
async def test_no_caching_between_calls(assessment_payload):
	service, prompts = _service_replying(json.dumps(assessment_payload))
	await service.evaluate_writing("T", ["w"], "same text")
	await service.evaluate_writing("T", ["w"], "same text")
	assert len(prompts) == 2
