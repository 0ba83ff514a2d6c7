import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from app.api.router import api_router
from app.core.config import settings
from app.core.database import create_backend_router
from app.core.errors import OrderStoreError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Open both backends before serving and close them on shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Service configuration: {settings.model_dump_json()}")
    try:
        app.state.backend_router = await asyncio.to_thread(
            create_backend_router, settings
        )
    except OrderStoreError as error:
        logger.error(f"Unable to initiate order backends: {error} ({error.__cause__})")
        raise

    yield
    app.state.backend_router.close()


app = FastAPI(title="Orders HTTP DB Service", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Invalid payloads are a plain 400, not FastAPI's default 422
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Invalid request body: order_id must be 1-64 characters and total a "
            "non-zero number with at most 6 integer digits and 2 decimals."
        },
    )


# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url=app.docs_url)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
