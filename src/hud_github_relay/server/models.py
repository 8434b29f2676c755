"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hud_github_relay.relay.github.issue_relay import IssueResult


class CustomerRegistration(BaseModel):
    customer_id: str = Field(min_length=1)
    installation_id: int = Field(gt=0)
    repos: list[str] = Field(default_factory=list)


class CustomerRegistered(BaseModel):
    success: bool = True
    customer_id: str


class IssueCreated(BaseModel):
    success: bool = True
    issue: IssueResult
