"""
Shared pytest fixtures: in-memory SQLite, seeded reference data, a scripted
model gateway and the FastAPI app with its dependencies overridden.
"""
import json
import os
import tempfile

os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="yuki-uploads-"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from yuki import models  # noqa: F401  registers every table
from yuki.core.database import Base, configure_sqlite, get_db
from yuki.core.deps import get_model_gateway, get_optional_model_gateway, get_storage
from yuki.core.exceptions import ProviderError
from yuki.schemas.settings import ProviderConfig
from yuki.services.document_service import DocumentStorage
from yuki.services.providers.base import ModelGateway
from yuki.services.seeding_service import SeedingService


class FakeGateway(ModelGateway):
    """Gateway that replays queued responses and records every call."""
    name = "fake"

    def __init__(self, responses=None):
        super().__init__(ProviderConfig(provider="ollama", model="fake-model", vision_model="fake-vision"))
        self.responses = list(responses or [])
        self.prompts = []
        self.images = []
        self.models = []

    def queue(self, *responses):
        self.responses.extend(responses)
        return self

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def _complete(self, prompt, images, system_prompt, model):
        self.prompts.append(prompt)
        self.images.append(images)
        self.models.append(model)
        if not self.responses:
            raise ProviderError("No scripted response left", kind="network")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response


@pytest.fixture()
def engine():
    engine = configure_sqlite(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    SeedingService.seed_all(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fake_gateway():
    return FakeGateway()


@pytest.fixture()
def storage(tmp_path):
    return DocumentStorage(upload_dir=tmp_path / "uploads")


@pytest.fixture()
def app(db_session, fake_gateway, storage):
    from main import app as fastapi_app

    def _override_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = _override_db
    fastapi_app.dependency_overrides[get_model_gateway] = lambda: fake_gateway
    fastapi_app.dependency_overrides[get_optional_model_gateway] = lambda: fake_gateway
    fastapi_app.dependency_overrides[get_storage] = lambda: storage
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
