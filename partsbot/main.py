"""
FastAPI application entry point.

Settings load the repository .env file on import; the chat pipeline is built
once at startup and shared through the application state.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from partsbot.agents.tools import ToolDispatcher
from partsbot.config.settings import Settings, settings
from partsbot.rag.retrieval import RetrievalEngine
from partsbot.routers.chat import router as chat_router
from partsbot.services.chat_service import ChatService
from partsbot.services.embedding import OpenAIEmbedder
from partsbot.services.llm import DeepSeekLLMService
from partsbot.services.vector_search import ChromaProductIndex

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_chat_service(config: Settings = settings) -> ChatService:
    """Wire the embedder, product index, tools and LLM into a ChatService."""
    embedder = OpenAIEmbedder(
        api_key=config.embedding_api_key,
        model=config.embedding_model,
        base_url=config.embedding_base_url,
    )
    index = ChromaProductIndex(
        collection_name=config.product_collection,
        persist_directory=config.chroma_persist_directory,
        host=config.chroma_host,
        port=config.chroma_port,
        hnsw_space=config.hnsw_space,
    )
    dispatcher = ToolDispatcher(
        RetrievalEngine(embedder, index),
        search_default_limit=config.search_default_limit,
        compatibility_limit=config.compatibility_search_limit,
        troubleshooting_limit=config.troubleshooting_search_limit,
        similarity_threshold=config.fallback_similarity_threshold,
    )
    llm_service = DeepSeekLLMService(
        api_key=config.llm_api_key,
        model=config.llm_model,
        base_url=config.llm_base_url,
        temperature=config.llm_temperature,
        max_tokens=config.llm_max_tokens,
    )
    return ChatService(
        llm_service,
        dispatcher,
        history_window=config.history_window,
        turn_timeout=config.turn_timeout_seconds,
    )


def create_app(chat_service: Optional[ChatService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        chat_service: Pre-built pipeline; built from settings at startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "chat_service", None) is None:
            app.state.chat_service = build_chat_service(settings)
            logger.info(f"{settings.app_name} started")
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.chat_service = chat_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_credentials=settings.allow_credentials,
        allow_methods=settings.allow_methods,
        allow_headers=settings.allow_headers,
    )

    app.include_router(chat_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
        }

    @app.get("/health")
    async def health(request: Request):
        """Health of the product index and LLM."""
        services = await request.app.state.chat_service.health_check()
        return {
            "status": "healthy" if services["overall"] else "degraded",
            "services": services,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "partsbot.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
