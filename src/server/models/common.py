"""Common model types shared across requests and responses."""
from typing import Annotated
from pydantic import BaseModel, Field


class SenderInfo(BaseModel):
    """Who sent a message, as shown to link and session viewers."""

    user_id: Annotated[str, Field()]
    name: Annotated[str, Field()]
