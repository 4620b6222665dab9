import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock
import os

# Set environment variables for the test run
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_conceptmap.db" # Use a separate test database
os.environ.pop("LLM_API_KEY", None)

from server import app
from src.conceptmap.services import generation
from src.conceptmap.services import quiz as quiz_service

FRAGMENT = {
    "nodes": [
        {"name": "Graph", "info": "Vertices and edges."},
        {"name": "Tree", "info": "A connected acyclic graph."},
    ],
    "links": [{"source": "Tree", "target": "Graph", "label": "is a"}],
}


def _cleanup():
    if os.path.exists("test_conceptmap.db"):
        os.remove("test_conceptmap.db")


@pytest_asyncio.fixture
async def client():
    """
    Async client with lifespan events against a fresh test database.
    """
    _cleanup()
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    _cleanup()


def test_health():
    _cleanup()
    with TestClient(app) as c:
        response = c.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["llmConfigured"] is False
    _cleanup()


@pytest.mark.asyncio
async def test_conversation_lifecycle(client: AsyncClient):
    response = await client.get("/api/conversations/")
    assert response.status_code == 200, response.text
    initial = response.json()
    assert len(initial) == 1 and initial[0]["isCurrent"]

    response = await client.post("/api/conversations/", json={})
    assert response.status_code == 201, response.text
    new_id = response.json()["id"]
    assert response.json()["title"] == "New Chat"

    response = await client.patch(f"/api/conversations/{new_id}", json={"title": ""})
    assert response.json()["title"] == "Untitled Chat"

    response = await client.post(f"/api/conversations/{new_id}/messages", json={"role": "user", "content": "Hello"})
    assert response.status_code == 201, response.text
    assert response.json()["messages"][0]["content"] == "Hello"

    response = await client.post(f"/api/conversations/{initial[0]['id']}/activate")
    assert response.status_code == 200

    response = await client.delete(f"/api/conversations/{initial[0]['id']}")
    assert response.json()["currentId"] == new_id

    response = await client.get(f"/api/conversations/{initial[0]['id']}")
    assert response.status_code == 404
    response = await client.post("/api/conversations/missing/activate")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_graph_editing_flow(client: AsyncClient):
    response = await client.get("/api/graph/")
    assert response.status_code == 200
    assert response.json()["graphData"] is None

    response = await client.post("/api/graph/merge", json=FRAGMENT)
    assert response.status_code == 200, response.text
    body = response.json()
    assert len(body["merge"]["addedNodeIds"]) == 2
    assert body["canUndo"] is True
    ids = {n["name"]: n["id"] for n in body["graphData"]["nodes"]}

    response = await client.post("/api/graph/nodes", json={
        "name": "Forest",
        "info": "Disjoint trees.",
        "edges": [{"nodeId": ids["Tree"], "label": "made of", "direction": "source"}],
    })
    assert response.status_code == 201, response.text
    forest = response.json()["id"]

    response = await client.get(f"/api/graph/nodes/{forest}/relationships")
    assert response.json()["relationships"] == [{"sourceName": "Forest", "label": "made of", "targetName": "Tree"}]

    response = await client.put(f"/api/graph/nodes/{forest}", json={"name": "Woods", "info": "Renamed."})
    assert response.json()["name"] == "Woods"

    response = await client.delete(f"/api/graph/nodes/{forest}")
    assert response.status_code == 200
    assert forest not in [n["id"] for n in response.json()["graphData"]["nodes"]]
    assert response.json()["undoDepth"] == 3

    response = await client.post("/api/graph/undo")
    assert "Woods" in [n["name"] for n in response.json()["graphData"]["nodes"]]
    response = await client.post("/api/graph/redo")
    assert len(response.json()["graphData"]["nodes"]) == 2

    response = await client.put("/api/graph/nodes/missing", json={"name": "x", "info": ""})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_settings_and_colors(client: AsyncClient):
    response = await client.put("/api/graph/settings/palette", json={"colorPaletteId": "viridis"})
    assert response.status_code == 404

    await client.post("/api/graph/merge", json=FRAGMENT)
    response = await client.put("/api/graph/settings/palette", json={"colorPaletteId": "nope"})
    assert response.status_code == 400
    response = await client.put("/api/graph/settings/palette", json={"colorPaletteId": "viridis"})
    assert response.json()["graphData"]["settings"]["colorPaletteId"] == "viridis"

    palettes = (await client.get("/api/graph/palettes")).json()
    viridis = next(p for p in palettes if p["id"] == "viridis")
    colors = (await client.get("/api/graph/colors")).json()
    assert set(colors.values()) <= set(viridis["colors"])

    node_id = next(iter(colors))
    response = await client.put(f"/api/graph/settings/relationships/{node_id}", json={})
    assert response.json() == {"nodeId": node_id, "show": True}
    graph = (await client.get("/api/graph/")).json()
    assert graph["graphData"]["settings"]["showNodeRelationships"][node_id] is True


@pytest.mark.asyncio
async def test_malformed_merge_is_rejected(client: AsyncClient):
    response = await client.post("/api/graph/merge", json={"nodes": [{"name": "No info"}]})
    assert response.status_code == 422
    graph = (await client.get("/api/graph/")).json()
    assert graph["graphData"] is None and graph["canUndo"] is False


@pytest.mark.asyncio
async def test_generate_and_stale_response(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(generation, "llm_json", AsyncMock(return_value=FRAGMENT))
    response = await client.post("/api/graph/generate", json={"assistantMessage": "Trees are graphs."})
    assert response.status_code == 200, response.text
    assert len(response.json()["graphData"]["nodes"]) == 2

    workspace = app.state.workspace_state.workspace

    async def switch_midway(*args, **kwargs):
        workspace.create_conversation()
        return FRAGMENT

    monkeypatch.setattr(generation, "llm_json", switch_midway)
    response = await client.post("/api/graph/generate", json={"assistantMessage": "More trees."})
    assert response.status_code == 409
    assert (await client.get("/api/graph/")).json()["graphData"] is None


@pytest.mark.asyncio
async def test_generation_without_api_key(client: AsyncClient):
    response = await client.post("/api/graph/generate", json={"assistantMessage": "hi"})
    assert response.status_code == 400
    assert response.json()["detail"] == "API key is missing."


@pytest.mark.asyncio
async def test_quiz_endpoints(client: AsyncClient, monkeypatch):
    response = await client.post("/api/graph/quiz/create", json={"difficulty": "Easy", "numQuestions": 1})
    assert response.status_code == 400

    await client.post("/api/graph/merge", json=FRAGMENT)
    quiz = {"questions": [{"question": "What is a tree?", "hint": "Cycles?", "exampleAnswer": "An acyclic graph."}]}
    monkeypatch.setattr(quiz_service, "llm_json", AsyncMock(return_value=quiz))
    response = await client.post("/api/graph/quiz/create", json={"difficulty": "Easy", "numQuestions": 1})
    assert response.status_code == 200, response.text
    assert response.json()["questions"][0]["question"] == "What is a tree?"

    response = await client.post("/api/graph/quiz/create", json={"difficulty": "Trivial", "numQuestions": 1})
    assert response.status_code == 422

    monkeypatch.setattr(quiz_service, "llm_json", AsyncMock(return_value={"evaluation": "correct", "explanation": "Yes."}))
    response = await client.post("/api/graph/quiz/validate", json={"question": "What is a tree?", "userAnswer": "Acyclic graph"})
    assert response.json()["evaluation"] == "correct"


@pytest.mark.asyncio
async def test_export_import_and_reload(client: AsyncClient):
    await client.post("/api/graph/merge", json=FRAGMENT)
    response = await client.get("/api/conversations/export")
    assert response.status_code == 200
    assert "conversations-" in response.headers["content-disposition"]
    exported = response.json()

    await client.post("/api/conversations/", json={"title": "Scratch"})
    response = await client.post("/api/conversations/import", json=exported)
    assert response.status_code == 200, response.text
    assert response.json()["imported"] == 1

    response = await client.post("/api/conversations/import", json={"bad": {"title": "no id"}})
    assert response.status_code == 422

    # A restart reads the same document back
    async with LifespanManager(app):
        graph = (await client.get("/api/graph/")).json()
    assert [n["name"] for n in graph["graphData"]["nodes"]] == ["Graph", "Tree"]
    assert graph["canUndo"] is False


@pytest.mark.asyncio
async def test_node_edges_and_rendered_links(client: AsyncClient):
    body = (await client.post("/api/graph/merge", json=FRAGMENT)).json()
    ids = {n["name"]: n["id"] for n in body["graphData"]["nodes"]}

    response = await client.post("/api/graph/nodes", json={
        "name": "Forest",
        "info": "",
        "edges": [{"nodeId": ids["Tree"], "label": "made of", "direction": "sideways"}],
    })
    assert response.status_code == 422

    response = await client.put("/api/graph/links", json=[
        {"source": {"id": ids["Graph"], "name": "Graph", "x": 3.5}, "target": ids["Tree"], "label": "generalizes"},
    ])
    assert response.status_code == 200, response.text
    links = response.json()["graphData"]["links"]
    assert links == [{"source": ids["Graph"], "target": ids["Tree"], "label": "generalizes"}]

    response = await client.put("/api/graph/links", json=[{"source": 1, "target": ids["Tree"]}])
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_activating_current_conversation_keeps_undo(client: AsyncClient):
    await client.post("/api/graph/merge", json=FRAGMENT)
    current = (await client.get("/api/graph/")).json()["conversationId"]
    response = await client.post(f"/api/conversations/{current}/activate")
    assert response.status_code == 200
    assert (await client.get("/api/graph/")).json()["canUndo"] is True
