"""Shared fixtures: in-memory database, seeded team, recording collaborators."""

import os

os.environ.setdefault("LAWNATION_APP_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("LAWNATION_APP_ENV", "test")
os.environ.setdefault("LAWNATION_DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("LAWNATION_QUEUE_ENABLED", "false")
os.environ.setdefault("LAWNATION_SWEEP_ENABLED", "false")
os.environ.setdefault("LAWNATION_NOTIFICATION_WEBHOOK_URL", "")
os.environ.setdefault("LAWNATION_LOG_JSON", "false")

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import lawnation.models  # noqa: E402,F401
from lawnation.core.database import Base  # noqa: E402
from lawnation.domain.workflow.capabilities import Actor  # noqa: E402
from lawnation.domain.workflow.state_machine import WorkflowAction  # noqa: E402
from lawnation.models import User, UserRole  # noqa: E402
from lawnation.services.workflow_service import TransitionRequest, WorkflowService  # noqa: E402


class RecordingDispatcher:
    """Stands in for the job queue; keeps what would have been enqueued."""

    def __init__(self):
        self.jobs: list[dict] = []

    async def submit(self, db, *, job_type, payload, entity_id=None, actor_user_id=None):
        self.jobs.append(
            {"job_type": job_type, "payload": payload, "entity_id": entity_id, "actor_user_id": actor_user_id}
        )
        return None

    def of_type(self, job_type: str) -> list[dict]:
        return [job for job in self.jobs if job["job_type"] == job_type]


class RecordingNotifier:
    def __init__(self):
        self.events: list[tuple[str, list[str], dict]] = []

    async def notify(self, event, recipients, context=None):
        self.events.append((event, list(recipients), dict(context or {})))
        return True

    def last(self, event: str):
        matches = [item for item in self.events if item[0] == event]
        return matches[-1] if matches else None


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def team(db):
    """Admin, two editors, two reviewers and a registered author, as Actors."""
    members = {
        "admin": ("Managing Editor", [UserRole.admin]),
        "editor": ("Editor One", [UserRole.editor]),
        "editor2": ("Editor Two", [UserRole.editor]),
        "reviewer": ("Reviewer One", [UserRole.reviewer]),
        "reviewer2": ("Reviewer Two", [UserRole.reviewer]),
        "author": ("Registered Author", [UserRole.author]),
    }
    users = {}
    for key, (name, roles) in members.items():
        user = User(full_name=name, email=f"{key}@lawnation.example", roles=[r.value for r in roles], is_active=True)
        db.add(user)
        users[key] = user
    await db.commit()
    return SimpleNamespace(
        **{key: Actor.build(user.id, user.roles, email=user.email) for key, user in users.items()}
    )


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def workflow(dispatcher, notifier):
    return WorkflowService(dispatcher=dispatcher, notifier=notifier)


def _submission_payload(**overrides) -> dict:
    payload = {
        "title": "Judicial Review of Administrative Action",
        "abstract": "A survey of recent appellate decisions.",
        "category": "Constitutional Law",
        "keywords": ["judicial review", "administrative law"],
        "author_name": "Asha Raman",
        "author_email": "Asha.Raman@example.org",
        "pdf_url": "https://files.example/original.pdf",
        "docx_url": "https://files.example/original.docx",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_payload():
    return _submission_payload


class WorkflowDriver:
    """Moves articles through the pipeline with the seeded team."""

    def __init__(self, db, workflow, team):
        self.db = db
        self.workflow = workflow
        self.team = team

    async def apply(self, action, article_id, actor, **payload):
        return await self.workflow.dispatch(
            self.db,
            TransitionRequest(action=WorkflowAction(action), article_id=article_id, actor=actor, payload=payload),
        )

    async def submitted(self, **overrides) -> int:
        result = await self.workflow.submit(self.db, payload=_submission_payload(**overrides), actor=self.team.author)
        return result.article.id

    async def editor_approved(self, **overrides) -> int:
        article_id = await self.submitted(**overrides)
        await self.apply("assign_editor", article_id, self.team.admin, editor_id=self.team.editor.id)
        await self.apply(
            "upload_editor_correction",
            article_id,
            self.team.editor,
            docx_url=f"https://files.example/{article_id}/editor.docx",
            pdf_url=f"https://files.example/{article_id}/editor.pdf",
            comments="Fixed citations",
        )
        await self.apply("editor_approve", article_id, self.team.editor)
        return article_id

    async def reviewer_approved(self, **overrides) -> int:
        article_id = await self.editor_approved(**overrides)
        await self.apply("assign_reviewer", article_id, self.team.admin, reviewer_id=self.team.reviewer.id)
        await self.apply(
            "upload_reviewer_correction",
            article_id,
            self.team.reviewer,
            docx_url=f"https://files.example/{article_id}/reviewer.docx",
        )
        await self.apply("reviewer_approve", article_id, self.team.reviewer)
        return article_id


@pytest.fixture
def driver(db, workflow, team):
    return WorkflowDriver(db, workflow, team)
