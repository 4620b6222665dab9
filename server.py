from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from contextlib import asynccontextmanager
import logging
import os

from dotenv import load_dotenv

# Load environment variables early so downstream modules see them
load_dotenv()
# Then overlay .env.local if present (does not override already-set envs)
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env.local"), override=False)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("conceptmap.server")

from src.conceptmap.context import AppContext
from src.database import database
from src.services.state import WorkspaceState
from src.api import conversations as conversations_router
from src.api import graph as graph_router
from src.api import quiz as quiz_router

# --- App Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # On startup:
    # Initialize database tables
    await database.init_db()
    # Restore (or create) the conversation state document
    async with database.SessionLocal() as db:
        state = await WorkspaceState.load(db, AppContext.from_env())
    app.state.workspace_state = state
    logger.info(
        "Loaded %d conversation(s); active %s",
        len(state.workspace.list_conversations()), state.workspace.current_id,
    )

    yield

    # On shutdown:
    await database.engine.dispose()

# --- Main App Setup ---
app = FastAPI(lifespan=lifespan)

# CORS for local dev (Vite at 5173)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(conversations_router.router)
app.include_router(quiz_router.router)
app.include_router(graph_router.router)

# --- Health Check ---
@app.get("/api/health")
async def health():
    ctx = getattr(app.state, "workspace_state", None)
    context = ctx.workspace.context if ctx is not None else AppContext.from_env()
    return {
        "status": "ok",
        "llmConfigured": bool(context.api_key),
        "provider": context.provider,
    }

# --- Static Frontend (Production) ---
# If a Vite build exists (./dist), serve it from the FastAPI app.
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DIST_DIR = os.path.join(BASE_DIR, "dist")

if os.path.isdir(DIST_DIR):
    index_path = os.path.join(DIST_DIR, "index.html")
    assets_path = os.path.join(DIST_DIR, "assets")

    @app.get("/")
    async def serve_index():
        if os.path.isfile(index_path):
            return FileResponse(index_path)
        return {"status": "ok"}

    if os.path.isdir(assets_path):
        app.mount("/assets", StaticFiles(directory=assets_path), name="assets")
