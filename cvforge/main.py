import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from cvforge.api.v1.cv import router as cv_router
from cvforge.api.v1.health import router as health_router
from cvforge.api.v1.jobs import router as jobs_router
from cvforge.api.v1.models import router as models_router
from cvforge.api.v1.optimizations import router as optimizations_router
from cvforge.api.v1.settings import router as settings_router
from cvforge.core.config import settings
from cvforge.core.lifespan import lifespan
from cvforge.core.rate_limit import limiter

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")

app = FastAPI(title="CVForge API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(settings_router, prefix="/v1", tags=["Settings"])
app.include_router(models_router, prefix="/v1", tags=["Models"])
app.include_router(cv_router, prefix="/v1", tags=["CV"])
app.include_router(jobs_router, prefix="/v1", tags=["Jobs"])
app.include_router(optimizations_router, prefix="/v1", tags=["Optimizations"])
