from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from core.logging import setup_logging
from exceptions import ValidationError, validation_exception_handler
from routers import health, metrics
from routers import validation as validation_router
from validation.factory import ValidatorFactory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Answer validation API started with shapes: {', '.join(ValidatorFactory.supported_shapes())}")
    yield
    logger.info("Answer validation API shutting down")


app = FastAPI(title="Answer Validation API", lifespan=lifespan)

# Register exception handler
app.add_exception_handler(ValidationError, validation_exception_handler)

app.include_router(health.router)
app.include_router(validation_router.router)
app.include_router(metrics.router)
