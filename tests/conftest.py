# Shared fixtures: an in-memory aiosqlite database per test, a session on
# it, a small factory for domain rows, and an HTTP client over the app.

import httpx
import pytest

from nexus.core.config import Settings
from nexus.core.database import build_engine, build_sessionmaker, create_all
from nexus.core.security import create_access_token
from nexus.main import create_app
from nexus.models.professional import Professional
from nexus.models.program import Activity, ActivityType, Module, Program, ProgramStatus
from nexus.models.schedule import WeeklySchedule, empty_week
from nexus.models.student import Student


TEST_SETTINGS = Settings(
    DATABASE_URL="sqlite+aiosqlite:///:memory:",
    APP_ENV="test",
    DEBUG=False,
    LOG_LEVEL="WARNING",
    ALLOWED_ORIGINS="http://testserver",
)


def _content_for(activity_type: ActivityType) -> dict:
    return {
        ActivityType.TEXT: {"type": "text", "content": "Leia e responda", "rich_text": False},
        ActivityType.CHECKLIST: {"type": "checklist", "items": [{"id": "c1", "label": "Beber água", "order": 0}]},
        ActivityType.VIDEO: {"type": "video", "video_url": "https://videos.example/1.mp4"},
        ActivityType.QUIZ: {
            "type": "quiz",
            "passing_score": 50,
            "questions": [
                {"id": "q1", "question": "2 + 2?", "type": "multiple_choice", "options": ["3", "4"], "correct_answer": "4"},
                {"id": "q2", "question": "Capital do Brasil?", "type": "short_answer", "correct_answer": "Brasília"},
            ],
        },
        ActivityType.FILE: {"type": "file", "file_url": "https://files.example/a.pdf"},
        ActivityType.HABIT: {"type": "habit", "frequency": "daily"},
    }[activity_type]


class Factory:
    """
    Rows come back detached: a controller rollback expires everything still
    in the session, and tests keep reading these ids afterwards.
    """

    def __init__(self, db):
        self.db = db
        self._n = 0

    def _next(self) -> int:
        self._n += 1
        return self._n

    async def professional(self, **kw) -> Professional:
        n = self._next()
        p = Professional(name=kw.pop("name", f"Profissional {n}"), email=kw.pop("email", f"pro{n}@nexus.test"), **kw)
        self.db.add(p)
        await self.db.commit()
        self.db.expunge(p)
        return p

    async def student(self, **kw) -> Student:
        n = self._next()
        s = Student(name=kw.pop("name", f"Aluno {n}"), email=kw.pop("email", f"aluno{n}@nexus.test"), **kw)
        self.db.add(s)
        await self.db.commit()
        self.db.expunge(s)
        return s

    async def program(self, owner: Professional, activities: int = 2, points=None, types=None) -> Program:
        """Program with one module holding `activities` activities (text unless `types` says otherwise)."""
        program = Program(title=f"Programa {self._next()}", created_by=owner.id, status=ProgramStatus.ACTIVE)
        self.db.add(program)
        await self.db.flush()

        module = Module(program_id=program.id, title="Módulo 1", order=1)
        self.db.add(module)
        await self.db.flush()

        types = types or [ActivityType.TEXT] * activities
        for i, activity_type in enumerate(types, start=1):
            self.db.add(Activity(
                module_id=module.id,
                program_id=program.id,
                type=activity_type,
                title=f"Atividade {i}",
                order=i,
                points=points,
                content=_content_for(activity_type),
            ))
        await self.db.commit()
        self.db.expunge(program)
        return program

    async def activities_of(self, program: Program) -> list[Activity]:
        from sqlalchemy import select

        res = await self.db.execute(
            select(Activity).where(Activity.program_id == program.id).order_by(Activity.order)
        )
        activities = list(res.scalars().all())
        for activity in activities:
            self.db.expunge(activity)
        return activities

    async def schedule(self, owner: Professional, per_day: dict | None = None) -> WeeklySchedule:
        """`per_day` maps a day name to a list of (activity_id, points)."""
        week = empty_week()
        for entry in week:
            for order, (activity_id, points) in enumerate((per_day or {}).get(entry["day"], []), start=1):
                entry["activities"].append({
                    "id": activity_id,
                    "type": "text",
                    "title": f"Atividade {activity_id}",
                    "points": points,
                    "order": order,
                    "content": {"type": "text", "content": "Faça a atividade"},
                })
        schedule = WeeklySchedule(title=f"Cronograma {self._next()}", created_by=owner.id, week_days=week)
        self.db.add(schedule)
        await self.db.commit()
        self.db.expunge(schedule)
        return schedule


@pytest.fixture
async def engine():
    engine = build_engine(TEST_SETTINGS)
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    async with build_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
async def client(engine):
    app = create_app(TEST_SETTINGS, engine=engine)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


def auth(user_id: str, role: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def student_auth():
    return lambda student: auth(student.id, "student")


@pytest.fixture
def professional_auth():
    return lambda professional: auth(professional.id, "professional")
