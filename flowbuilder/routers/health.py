"""Health check for the editor service."""

from __future__ import annotations

from fastapi import APIRouter

from .. import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "flowbuilder", "version": __version__}
