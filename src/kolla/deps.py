"""FastAPI dependencies for Kolla routes."""

from __future__ import annotations

from fastapi import Request

from kolla.registry import AssetRegistry
from kolla.reveal import RevealProtocol


def get_registry(request: Request) -> AssetRegistry:
    """Get the asset registry from app state."""
    return request.app.state.registry


def get_reveal(request: Request) -> RevealProtocol:
    """Get the reveal protocol from app state."""
    return request.app.state.reveal
