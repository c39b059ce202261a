"""Pydantic schemas for request and response validation.

Endpoint modules import from the domain submodules directly; the base
classes are re-exported here.
"""

from recipe_keeper.schemas.base import (
    APIRequest,
    APIResponse,
    DownstreamRequest,
    DownstreamResponse,
)


__all__ = [
    "APIRequest",
    "APIResponse",
    "DownstreamRequest",
    "DownstreamResponse",
]
