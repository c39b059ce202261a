"""Base schema configuration for all Pydantic models.

Every schema is camelCase on the wire and accepts snake_case in Python.

Usage:
    - APIRequest: incoming request bodies
    - APIResponse: outgoing response bodies
    - DownstreamRequest: payloads sent to external services
    - DownstreamResponse: payloads received from external services
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _BaseSchema(BaseModel):
    """Private base schema with common configuration.

    Do not use directly - inherit from one of the public subclasses.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_timedelta="float",
        use_enum_values=True,
        validate_default=True,
        serialize_by_alias=True,
    )


class APIRequest(_BaseSchema):
    """Request bodies. Unknown properties sent by clients are ignored."""

    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
    )


class APIResponse(_BaseSchema):
    """Response bodies. Only declared properties may be returned."""

    model_config = ConfigDict(
        extra="forbid",
    )


class DownstreamRequest(_BaseSchema):
    """Payloads sent to external services. Only declared properties are sent."""

    model_config = ConfigDict(
        extra="forbid",
    )


class DownstreamResponse(_BaseSchema):
    """Payloads from external services.

    Upstream APIs add properties over time, so unknown ones are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
    )
