from __future__ import annotations

from fastapi import APIRouter, Request


router = APIRouter(prefix="/api")


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/status")
async def status(request: Request) -> dict:
    return request.app.state.orchestrator.status()
