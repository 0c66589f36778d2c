"""Attempt-related Pydantic models."""
from typing import Literal

from pydantic import BaseModel


class AnswerUpdate(BaseModel):
    """Model for setting the answer to one question."""

    value: str


class NavigateRequest(BaseModel):
    """Model for moving through the questions."""

    action: Literal["next", "previous", "go_to"]
    index: int | None = None


class SubmitRequest(BaseModel):
    """Model for submitting an attempt.

    `confirmed` is the player's answer to the "submit now?" prompt; `retry`
    resubmits after time ran out and the automatic submission failed.
    """

    confirmed: bool = False
    retry: bool = False
