"""Pydantic request models for API endpoints."""

from pydantic import BaseModel


class LoadBody(BaseModel):
    new_game: bool = False


class StreamStartBody(BaseModel):
    message_index: int | None = None


class TokenBody(BaseModel):
    delta: str


class PollBody(BaseModel):
    message_index: int | None = None
