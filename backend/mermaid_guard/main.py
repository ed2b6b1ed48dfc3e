from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mermaid_guard import __version__, config
from mermaid_guard.api.routes import router
from mermaid_guard.observability import setup_logging

setup_logging(config.LOG_LEVEL, "json")

app = FastAPI(
    title="Mermaid Guard",
    version=__version__,
)

# Middleware first, routes after
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
