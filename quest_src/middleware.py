from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from quest_src.config import Config
import logging
import time

logger = logging.getLogger("quest_src.access")

def register_middleware(app: FastAPI):

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        processing_time = time.perf_counter() - start_time
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} "
            f"completed after {processing_time:.3f}s"
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
