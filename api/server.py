"""
HTTP API for the AI Companion server.

Request bodies are validated by the pydantic schemas before any handler runs,
so malformed input (an out-of-range tone level, an empty chat message) is
rejected with 422 and never reaches the agents.

Run with ``python run_server.py`` or
``uvicorn api.server:create_app --factory``.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agents import AgentOrchestrator, RecapAgent
from config.settings import settings
from core import (
    AICompanionException,
    CompletionError,
    RecordNotFoundError,
    configure_logging,
    get_logger,
)
from memory.memory_manager_async import AsyncMemoryManager
from schemas import (
    ChatReplySchema,
    ChatRequestSchema,
    CompanionCreateSchema,
    CompanionSchema,
    ContentPolicy,
    MemoryFactSchema,
    MemoryFactUpsertSchema,
    RecapBatchResultSchema,
    RecapOutcomeSchema,
    RecapRequestSchema,
    RecapSchema,
    ToneUpdateSchema,
    UserCreateSchema,
    UserSchema,
    load_policy,
)

logger = get_logger(__name__)


def create_app(
    memory_manager: Optional[AsyncMemoryManager] = None,
    llm=None,
    policy_provider: Callable[[], ContentPolicy] = load_policy,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        memory_manager: Memory manager; defaults to one over the Postgres store
        llm: Completion client; defaults to the LiteLLM client
        policy_provider: Source of the per-request content policy
    """
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.is_production)

    database = None
    if memory_manager is None:
        from memory.database_async import AsyncDatabase

        database = AsyncDatabase()
        memory_manager = AsyncMemoryManager(database)

    if llm is None:
        from utils.llm_client import LLMClient

        llm = LLMClient()

    orchestrator = AgentOrchestrator(memory_manager, llm, policy_provider=policy_provider)
    recap_agent = RecapAgent(memory_manager, llm)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up AI Companion API", environment=settings.ENVIRONMENT)
        yield
        logger.info("Shutting down...")
        if database is not None:
            await database.dispose()

    app = FastAPI(title="AI Companion API", lifespan=lifespan)
    app.state.memory = memory_manager
    app.state.orchestrator = orchestrator
    app.state.recap_agent = recap_agent

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error mapping ───────────────────────────────────────────────

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(CompletionError)
    async def completion_error_handler(request: Request, exc: CompletionError):
        # The user message is already stored; the client may resend
        body = exc.to_dict()
        body["retryable"] = True
        return JSONResponse(status_code=503, content=body)

    @app.exception_handler(AICompanionException)
    async def app_error_handler(request: Request, exc: AICompanionException):
        logger.error("Request failed", path=request.url.path, **exc.to_dict())
        return JSONResponse(status_code=500, content=exc.to_dict())

    # ── Health ──────────────────────────────────────────────────────

    @app.get("/health")
    async def health_check():
        return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}

    # ── Users & Companions ──────────────────────────────────────────

    @app.post("/api/users", response_model=UserSchema)
    async def create_user(req: UserCreateSchema):
        """Create a user, or return the existing one for this email."""
        return await memory_manager.get_or_create_user(req.email)

    @app.post("/api/companions", response_model=CompanionSchema)
    async def create_companion(req: CompanionCreateSchema):
        return await memory_manager.create_companion(
            user_id=req.user_id,
            name=req.name,
            tone_level=req.tone_level,
            persona=req.persona,
        )

    @app.get("/api/companions/{companion_id}")
    async def get_companion(companion_id: int):
        """Companion details plus its top-ranked memories."""
        companion = await memory_manager.require_companion(companion_id)
        memories = await memory_manager.get_ranked_memories(companion_id)
        return {
            "companion": companion.model_dump(mode="json"),
            "memories": [m.model_dump(mode="json") for m in memories],
        }

    @app.patch("/api/companions/{companion_id}/tone", response_model=CompanionSchema)
    async def update_tone(companion_id: int, req: ToneUpdateSchema):
        return await memory_manager.update_tone_level(companion_id, req.tone_level)

    @app.get("/api/companions/{companion_id}/recaps", response_model=List[RecapSchema])
    async def list_recaps(
        companion_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ):
        await memory_manager.require_companion(companion_id)
        return await memory_manager.list_recaps(companion_id, since=since, until=until)

    # ── Memories ────────────────────────────────────────────────────

    @app.post("/api/memories", response_model=MemoryFactSchema)
    async def upsert_memory(req: MemoryFactUpsertSchema):
        """Upsert a user-editable memory by (companion_id, key)."""
        return await memory_manager.upsert_memory(
            companion_id=req.companion_id,
            key=req.key,
            value=req.value,
            importance=req.importance,
        )

    # ── Chat ────────────────────────────────────────────────────────

    @app.post("/api/chat", response_model=ChatReplySchema)
    async def chat(req: ChatRequestSchema):
        reply = await orchestrator.chat_turn(req.user_id, req.companion_id, req.message)
        return ChatReplySchema(reply=reply)

    # ── Jobs ────────────────────────────────────────────────────────

    @app.post("/api/jobs/weekly-recap", response_model=RecapOutcomeSchema)
    async def weekly_recap(req: RecapRequestSchema):
        """Recap a single companion."""
        return await recap_agent.recap_one(req.companion_id)

    @app.post("/api/jobs/weekly-recap-all", response_model=RecapBatchResultSchema)
    async def weekly_recap_all():
        """Recap every companion. Called by the scheduler."""
        return await recap_agent.recap_all()

    return app
