import os
import tempfile
from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine
from starlette.testclient import TestClient

# Set up test config before any app imports
_tmpdir = tempfile.mkdtemp()

_test_config_content = f"""\
llm:
  api_key: "test-key"
  base_url: "https://api.example.com/v1"
  model: "test-model"
  max_retries: 1
database:
  url: "sqlite:///:memory:"
logging:
  level: "WARNING"
  file: "{_tmpdir}/test.log"
security:
  cors_origins:
    - "http://localhost"
srs:
  default_language: "ar"
  translate_batch_size: 2
languages:
  - code: "ar"
    name: "Arabic"
    direction: "rtl"
  - code: "es"
    name: "Spanish"
"""

from pathlib import Path

_test_config_path = Path(_tmpdir) / "config.yaml"
_test_config_path.write_text(_test_config_content)
os.environ["APP_CONFIG_PATH"] = str(_test_config_path)

from linguadeck.core.config import get_config

get_config.cache_clear()

from linguadeck.core.db import get_session, init_db
from linguadeck.main import app
from linguadeck.models.content import Conjugation, Verb, Vocab
from linguadeck.models.flashcard import CardType, Flashcard
from linguadeck.services.card_lifecycle import CardLifecycleManager
from linguadeck.services.card_store import CardStore

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(name="engine")
def engine_fixture():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="unreachable_session")
def unreachable_session_fixture(tmp_path):
    """A session whose database file sits in a directory that does not exist."""
    broken = create_engine(f"sqlite:///{tmp_path}/missing/dir/cards.db")
    with Session(broken) as session:
        yield session
    broken.dispose()


@pytest.fixture(name="store")
def store_fixture(session):
    return CardStore(session)


@pytest.fixture(name="lifecycle")
def lifecycle_fixture(session):
    return CardLifecycleManager(session)


@pytest.fixture(name="make_card")
def make_card_fixture(session):
    """Insert a due-ready flashcard with an explicit scheduling state."""
    counter = {"n": 0}

    def _make(
        repetitions: int = 0,
        ease_factor: float = 2.5,
        next_review: datetime = NOW,
        interval: int = 0,
        language: str = "ar",
        card_type: CardType = CardType.VOCAB,
    ) -> Flashcard:
        counter["n"] += 1
        label = f"word {counter['n']}"
        card = Flashcard(
            language_code=language,
            card_type=card_type,
            front=label,
            back=f"back of {label}",
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review=next_review,
            created_at=NOW,
        )
        if card_type == CardType.VOCAB:
            vocab = Vocab(language_code=language, english=label, target=f"back of {label}")
            session.add(vocab)
            session.commit()
            card.vocab_id = vocab.id
        else:
            verb = Verb(language_code=language, infinitive=label)
            session.add(verb)
            session.commit()
            conjugation = Conjugation(verb_id=verb.id, tense="past", person="1s", conjugated=label)
            session.add(conjugation)
            session.commit()
            card.conjugation_id = conjugation.id
        session.add(card)
        session.commit()
        session.refresh(card)
        return card

    return _make


@pytest.fixture(name="client")
def client_fixture(engine):
    def override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
