"""FastAPI application exposing the document summarization API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from medsum import __version__

from .dependencies import get_settings
from .logging_setup import setup_logging
from .routes.health import router as health_router
from .routes.process import router as process_router

setup_logging()

app = FastAPI(title="Medical Article Summarizer API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().client_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(process_router)
app.include_router(health_router)


def main() -> None:
    """Run the API with uvicorn (``HOST``/``PORT`` env, default 0.0.0.0:3001)."""
    import os

    import uvicorn

    uvicorn.run(
        "api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
