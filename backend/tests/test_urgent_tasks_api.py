# ruff: noqa: INP001
"""Integration tests for the urgent task routes over an in-memory SQLite database."""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI
from fastapi_pagination import add_pagination
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from personal_crm.api.tasks import router as tasks_router
from personal_crm.api.urgent_tasks import router as urgent_tasks_router
from personal_crm.core.error_handling import REQUEST_ID_HEADER, install_error_handling
from personal_crm.db.session import get_session
from personal_crm.models.tasks import Task


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _build_test_app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(urgent_tasks_router)
    api_v1.include_router(tasks_router)
    app.include_router(api_v1)
    add_pagination(app)

    async def _override_get_session() -> AsyncSession:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


@pytest_asyncio.fixture
async def session_maker() -> async_sessionmaker[AsyncSession]:
    engine = await _make_engine()
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def client(session_maker: async_sessionmaker[AsyncSession]) -> AsyncClient:
    app = _build_test_app(session_maker)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as http_client:
        yield http_client


async def _create(client: AsyncClient, title: str, **extra: object) -> dict[str, object]:
    response = await client.post("/api/v1/urgent-tasks", json={"title": title, **extra})
    assert response.status_code == 201, response.text
    return response.json()


async def _listed_titles(client: AsyncClient) -> list[str]:
    response = await client.get("/api/v1/urgent-tasks")
    assert response.status_code == 200
    return [item["title"] for item in response.json()]


@pytest.mark.asyncio
async def test_create_returns_201_and_appends(client: AsyncClient) -> None:
    first = await _create(client, "  Call mom ", description=" about Sunday ")
    second = await _create(client, "Pay bills")

    assert first["title"] == "Call mom"
    assert first["description"] == "about Sunday"
    assert first["order_index"] == 0
    assert second["order_index"] == 1
    assert UUID(str(first["id"]))
    assert await _listed_titles(client) == ["Call mom", "Pay bills"]


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"title": ""}, {"title": "   "}])
async def test_create_blank_or_missing_title_returns_400(
    client: AsyncClient,
    body: dict[str, object],
) -> None:
    response = await client.post("/api/v1/urgent-tasks", json=body)

    assert response.status_code == 400
    payload = response.json()
    assert payload["detail"] == "Title is required"
    assert payload["code"] == "validation"
    assert payload["request_id"] == response.headers[REQUEST_ID_HEADER]
    assert await _listed_titles(client) == []


@pytest.mark.asyncio
async def test_move_task_promotes_backlog_task_without_changing_it(
    client: AsyncClient,
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    source = Task(title="Plan birthday", description="Sam turns 30", status="in_progress")
    async with session_maker() as session:
        session.add(source)
        await session.commit()
    before = (await client.get(f"/api/v1/tasks/{source.id}")).json()

    response = await client.post(
        "/api/v1/urgent-tasks/move-task",
        json={"taskId": str(source.id), "title": "Plan birthday", "description": "Sam turns 30"},
    )

    assert response.status_code == 201, response.text
    assert response.json()["original_task_id"] == str(source.id)
    after = (await client.get(f"/api/v1/tasks/{source.id}")).json()
    assert after == before

    duplicate = await client.post(
        "/api/v1/urgent-tasks/move-task",
        json={"taskId": str(source.id), "title": "Plan birthday"},
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Task is already in urgent list"


@pytest.mark.asyncio
async def test_create_with_already_linked_original_task_returns_409(
    client: AsyncClient,
) -> None:
    source_id = str(uuid4())
    await _create(client, "First link", original_task_id=source_id)

    response = await client.post(
        "/api/v1/urgent-tasks",
        json={"title": "Second link", "original_task_id": source_id},
    )

    assert response.status_code == 409
    assert response.json()["code"] == "conflict"
    assert await _listed_titles(client) == ["First link"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{"title": "No id"}, {"taskId": "", "title": "Empty id"}, {"taskId": str(uuid4())}],
)
async def test_move_task_missing_fields_returns_400(
    client: AsyncClient,
    body: dict[str, object],
) -> None:
    response = await client.post("/api/v1/urgent-tasks/move-task", json=body)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_move_task_unknown_backlog_task_returns_404(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/urgent-tasks/move-task",
        json={"taskId": str(uuid4()), "title": "Ghost"},
    )

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_patch_and_put_apply_only_present_fields(client: AsyncClient) -> None:
    created = await _create(client, "Draft", description="x")

    patched = await client.patch(
        f"/api/v1/urgent-tasks/{created['id']}",
        json={"title": "y"},
    )
    assert patched.status_code == 200
    assert patched.json()["title"] == "y"
    assert patched.json()["description"] == "x"

    put = await client.put(
        f"/api/v1/urgent-tasks/{created['id']}",
        json={"description": "z"},
    )
    assert put.status_code == 200
    assert put.json()["title"] == "y"
    assert put.json()["description"] == "z"


@pytest.mark.asyncio
async def test_update_unknown_id_returns_404(client: AsyncClient) -> None:
    response = await client.patch(f"/api/v1/urgent-tasks/{uuid4()}", json={"title": "y"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_returns_ok_and_is_idempotent(client: AsyncClient) -> None:
    a = await _create(client, "A")
    await _create(client, "B")

    first = await client.delete(f"/api/v1/urgent-tasks/{a['id']}")
    again = await client.delete(f"/api/v1/urgent-tasks/{a['id']}")

    assert first.status_code == 200
    assert first.json() == {"ok": True}
    assert again.status_code == 200
    listed = (await client.get("/api/v1/urgent-tasks")).json()
    assert [(item["title"], item["order_index"]) for item in listed] == [("B", 0)]


@pytest.mark.asyncio
async def test_reorder_persists_submitted_order(client: AsyncClient) -> None:
    a = await _create(client, "A")
    b = await _create(client, "B")
    c = await _create(client, "C")

    response = await client.put(
        "/api/v1/urgent-tasks/reorder",
        json={
            "taskUpdates": [
                {"id": c["id"], "order_index": 0},
                {"id": a["id"], "order_index": 1},
                {"id": b["id"], "order_index": 2},
            ],
        },
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    listed = (await client.get("/api/v1/urgent-tasks")).json()
    assert [(item["title"], item["order_index"]) for item in listed] == [
        ("C", 0),
        ("A", 1),
        ("B", 2),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"taskUpdates": None}, {"taskUpdates": {"id": "x"}}])
async def test_reorder_malformed_payload_returns_400_and_keeps_order(
    client: AsyncClient,
    body: dict[str, object],
) -> None:
    await _create(client, "A")
    await _create(client, "B")

    response = await client.put("/api/v1/urgent-tasks/reorder", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid task updates"
    assert await _listed_titles(client) == ["A", "B"]


@pytest.mark.asyncio
async def test_list_is_stable_across_calls(client: AsyncClient) -> None:
    for title in ("A", "B", "C"):
        await _create(client, title)

    first = (await client.get("/api/v1/urgent-tasks")).json()
    second = (await client.get("/api/v1/urgent-tasks")).json()

    assert first == second
