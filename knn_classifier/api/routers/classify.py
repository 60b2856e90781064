from __future__ import annotations
from typing import List

from fastapi import APIRouter, HTTPException, Request
from fastapi import status as http

from knn_classifier.api.schemas import (
    ClassifyRequest,
    ClassifyResponse,
    Hit,
    InfoResponse,
    NeighborsRequest,
    NeighborsResponse,
)
from knn_classifier.models.vectors import ClassificationResult
from knn_classifier.services.classifier import Classifier

router = APIRouter()


def _classifier(request: Request) -> Classifier:
    classifier = getattr(request.app.state, "classifier", None)
    if classifier is None or not classifier.is_ready:
        raise HTTPException(http.HTTP_503_SERVICE_UNAVAILABLE, detail="Classifier not initialized")
    return classifier


def _hits(results: List[ClassificationResult]) -> List[Hit]:
    return [Hit(label=r.label, confidence=r.confidence, row_index=r.row_index) for r in results]


@router.get("/info", response_model=InfoResponse)
def info(request: Request):
    return InfoResponse(**_classifier(request).describe())


@router.post("/classify", response_model=ClassifyResponse)
def classify(request: Request, body: ClassifyRequest):
    """
    Classify one feature vector with the configured k.
    The first hit is the decision; confidence is its distance.
    """
    classifier = _classifier(request)
    try:
        results = classifier.classify(body.features)
    except ValueError as e:
        raise HTTPException(http.HTTP_400_BAD_REQUEST, detail=str(e))
    top = results[0]
    return ClassifyResponse(label=top.label, confidence=top.confidence, results=_hits(results))


@router.post("/neighbors", response_model=NeighborsResponse)
def neighbors(request: Request, body: NeighborsRequest):
    classifier = _classifier(request)
    try:
        results = classifier.neighbors(body.features, body.k)
    except ValueError as e:
        raise HTTPException(http.HTTP_400_BAD_REQUEST, detail=str(e))
    return NeighborsResponse(results=_hits(results))
