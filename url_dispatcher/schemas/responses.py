from typing import Literal

from pydantic import BaseModel, Field


class StatusOut(BaseModel):
    status: Literal["running"] = "running"
    service: str = Field("url-dispatcher", description="Name of the service")
