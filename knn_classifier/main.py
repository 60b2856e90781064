from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI

from knn_classifier.api.routers.classify import router as classify_router
from knn_classifier.core.config import ClassifierSettings
from knn_classifier.services.classifier import Classifier


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[ClassifierSettings] = None,
    classifier: Optional[Classifier] = None,
) -> FastAPI:
    """
    Build the API. Without an injected classifier, startup loads the database
    and builds the index; any failure there aborts startup.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.classifier is None:
            cfg = settings or ClassifierSettings()
            configure_logging(cfg.LOG_LEVEL)
            app.state.classifier = Classifier.from_settings(cfg)
        yield

    app = FastAPI(title="k-NN Region Classifier", lifespan=lifespan)
    app.state.classifier = classifier
    app.include_router(classify_router, prefix="/knn", tags=["classifier"])
    return app


app = create_app()
