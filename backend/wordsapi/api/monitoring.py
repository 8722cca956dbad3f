"""Monitoring API routes for health checks and metrics"""
from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from wordsapi.core.metrics import active_sessions_gauge
from wordsapi.core.security import get_session_store
from wordsapi.services.session_store import SessionStore

router = APIRouter(tags=["monitoring"])


@router.get("/metrics")
def metrics_endpoint(store: SessionStore = Depends(get_session_store)):
    """Prometheus metrics endpoint - refreshes the session gauge before export"""
    active_sessions_gauge.set(len(store))
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
