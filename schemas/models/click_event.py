"""
Click event model.

One message on the analytic queue, published by the redirect server each
time a short link is followed. The wire format uses single-letter keys:

    {"i": "<ip>", "l": "<short_code>"}

`i` is absent (or null) for traffic whose origin is unknown, e.g. internal
requests. Instances are frozen once validated.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ClickEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ip: Optional[str] = Field(default=None, alias="i")
    short_code: str = Field(alias="l")
