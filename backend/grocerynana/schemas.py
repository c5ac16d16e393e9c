from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class HelloResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: Literal["ok", "error"]
    message: str
