"""Gourmet Food Catalog - Main Entry Point.

Provides FastAPI application factory and CLI commands for:
- Running the API server with uvicorn
- Initializing database constraints
"""

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gourmet.config import config
from gourmet.api.routes import router
from gourmet.errors import GourmetError, InvalidInputError, NotFoundError, UpstreamQueryError
from gourmet.services.cache import NullCache, TTLCache
from gourmet.services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Log to stdout and to the configured log file."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(config.LOG_FILE),
        ],
    )

    # Suppress noisy watchfiles logger (triggers on every log write causing spam)
    logging.getLogger("watchfiles").setLevel(logging.WARNING)


def error_status(exc: GourmetError) -> int:
    """HTTP status code for a service error."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidInputError):
        return 400
    return 500


async def handle_service_error(request: Request, exc: GourmetError) -> JSONResponse:
    """Translate service errors into the standard error body."""
    status_code = error_status(exc)
    if isinstance(exc, UpstreamQueryError):
        logger.error("Upstream failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": {"error": str(exc), "code": exc.code}},
    )


def create_app(
    neo4j_service: Neo4jService | None = None,
    cache: TTLCache | NullCache | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        neo4j_service: Graph gateway. Created from config if not provided.
        cache: Food detail cache. Built from config if not provided.

    Returns:
        Configured FastAPI application instance.
    """
    if neo4j_service is None:
        neo4j_service = Neo4jService()
    if cache is None:
        cache = TTLCache(config.CACHE_TTL_SECONDS) if config.CACHE_ENABLED else NullCache()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.neo4j.close()

    app = FastAPI(
        title="Gourmet Food Catalog",
        description="Food analytics and recommendations over a Neo4j food graph",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.neo4j = neo4j_service
    app.state.cache = cache

    app.add_exception_handler(GourmetError, handle_service_error)

    # Include API router
    app.include_router(router)

    # Add root route
    @app.get("/")
    async def index():
        return {
            "name": "Gourmet Food Catalog",
            "version": "0.1.0",
            "description": "Food analytics and recommendations over a Neo4j food graph",
            "docs": "/docs",
            "endpoints": {
                "health": "/api/v1/health",
                "trends": "GET /api/v1/analytics/trends?days=30",
                "user_behavior": "GET /api/v1/analytics/user-behavior/{user_id}",
                "similarity": "GET /api/v1/analytics/similarity/{food_id}",
                "seasonal": "GET /api/v1/analytics/seasonal?season=summer",
                "dashboard": "GET /api/v1/analytics/dashboard",
                "personalized": "GET /api/v1/recommendations/personalized",
                "food": "GET /api/v1/foods/{food_id}",
            },
        }

    return app


async def _init_database() -> list[str]:
    neo4j = Neo4jService()
    try:
        await neo4j.verify_connectivity()
        print("Connected to Neo4j successfully!")
        return await neo4j.create_constraints()
    finally:
        await neo4j.close()


def init_database() -> None:
    """Initialize Neo4j database with required constraints."""
    print("Initializing Neo4j database...")

    # Validate config
    missing = config.validate()
    if missing:
        print(f"Error: Missing configuration: {', '.join(missing)}")
        sys.exit(1)

    try:
        constraints = asyncio.run(_init_database())
        print(f"Created {len(constraints)} constraints/indexes:")
        for name in constraints:
            print(f"  - {name}")
        print("Database initialization complete!")

    except GourmetError as e:
        print(f"Error initializing database: {e}")
        sys.exit(1)


def run_server() -> None:
    """Run the FastAPI server with uvicorn."""
    # Validate config
    missing = config.validate()
    if missing:
        print(f"Warning: Missing configuration: {', '.join(missing)}")
        print("Some features may not work correctly.")

    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.APP_HOST,
        port=config.APP_PORT,
        reload=config.APP_DEBUG,
    )


def main() -> None:
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Gourmet Food Catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                    # Run the API server
  python main.py --init-db          # Initialize database constraints
  python main.py --host 0.0.0.0     # Run server on specific host
  python main.py --port 8080        # Run server on specific port
        """,
    )

    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Initialize Neo4j database with constraints",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help=f"Host to bind the server (default: {config.APP_HOST})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Port to bind the server (default: {config.APP_PORT})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload mode",
    )

    args = parser.parse_args()
    configure_logging()

    if args.init_db:
        init_database()
    else:
        # Override config with CLI args
        if args.host:
            config.APP_HOST = args.host
        if args.port:
            config.APP_PORT = args.port
        if args.reload:
            config.APP_DEBUG = True

        run_server()


if __name__ == "__main__":
    main()
