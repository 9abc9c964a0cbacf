from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from url_dispatcher.presentation.api import api

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]


def create_app() -> FastAPI:
    app = FastAPI(title="URL Dispatcher", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=CORS_METHODS,
        allow_headers=["Content-Type"],
    )
    app.include_router(api)
    return app


app = create_app()
