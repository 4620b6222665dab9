import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from src.conceptmap.context import AppContext
from src.database import crud, models
from src.services.state import WorkspaceState


@pytest_asyncio.fixture
async def sessions(tmp_path):
    """
    A throwaway sqlite database with the state table created.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'state.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_fresh_installation_is_persisted(sessions):
    async with sessions() as db:
        assert await crud.load_state(db) is None
        state = await WorkspaceState.load(db, AppContext())
    async with sessions() as db:
        doc = await crud.load_state(db)
    assert list(doc) == [state.workspace.current_id]
    assert not state.workspace.dirty


@pytest.mark.asyncio
async def test_state_survives_reload(sessions):
    async with sessions() as db:
        state = await WorkspaceState.load(db, AppContext())
        state.workspace.store().apply_fragment({"nodes": [{"name": "Heap", "info": "tree"}]})
        state.workspace.rename_conversation(state.workspace.current_id, "Heaps")
        await state.persist(db)
    async with sessions() as db:
        reloaded = await WorkspaceState.load(db, AppContext())
    conv = reloaded.workspace.current
    assert conv.title == "Heaps"
    assert conv.graphData.nodes[0].name == "Heap"
    assert not reloaded.workspace.store().history.can_undo()


@pytest.mark.asyncio
async def test_failed_write_is_raised(sessions, monkeypatch):
    async def boom(db, payload, doc_id=models.DEFAULT_DOCUMENT_ID):
        raise RuntimeError("disk full")

    async with sessions() as db:
        state = await WorkspaceState.load(db, AppContext())
        state.workspace.create_conversation()
        monkeypatch.setattr(crud, "save_state", boom)
        with pytest.raises(RuntimeError):
            await state.persist(db)
    assert state.workspace.dirty
