import copy
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coach.db import Base
from coach.schemas import VocabularyItem

import coach.models  # noqa: F401  registers tables


ASSESSMENT_PAYLOAD = {
	"overallScore": 78,
	"generalAdvice": "Solid argument; tighten the logic between sentences.",
	"syntax": {
		"score": 72,
		"comment": "Several comma splices.",
		"examples": ["Because attention is finite, we must guard it."],
	},
	"lexicon": {
		"score": 80,
		"comment": "Good range.",
		"vocabUsageCheck": [
			{"word": "austerity", "usedCorrectly": True},
			{"word": "curate", "usedCorrectly": False, "comment": "Needs an object."},
		],
		"collocationCorrections": [
			{"original": "make a plan", "betterAlternative": "devise a plan", "reason": "More precise collocation."},
		],
	},
	"grammar": {
		"score": 83,
		"comment": "Watch your prepositions.",
		"corrections": [
			{"original": "on the internet age", "correction": "in the internet age", "reason": "Fixed phrase."},
		],
	},
}


@pytest.fixture
def assessment_payload():
	"""A fresh deep copy of a well-formed assessment payload."""
	return copy.deepcopy(ASSESSMENT_PAYLOAD)


def make_vocabulary(words):
	return [VocabularyItem(word=w, pos="n.", definition=f"{w} (定义)") for w in words]


@pytest.fixture
def vocabulary_factory():
	return make_vocabulary


@pytest.fixture
def fake_service():
	"""A generative service double with AsyncMock operations."""
	from coach.schemas import AssessmentResult

	service = AsyncMock()
	service.suggest_topics = AsyncMock(return_value=["Digital Minimalism", "Urban Silence"])
	service.generate_vocabulary = AsyncMock(return_value=make_vocabulary(["austerity", "curate", "distraction"]))
	service.evaluate_writing = AsyncMock(return_value=AssessmentResult.model_validate(ASSESSMENT_PAYLOAD))
	return service


@pytest.fixture
def db_session():
	"""An in-memory SQLite session with all tables created."""
	engine = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=engine)
	TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
	session = TestingSession()
	try:
		yield session
	finally:
		session.close()
		engine.dispose()
