"""Oracle job task models (Switchboard OracleJob subset)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class HttpTask(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(..., min_length=1)


class JsonParseTask(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = Field(..., min_length=1)


class Task(BaseModel):
    """One step of an oracle job. Exactly one task kind is set."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    http_task: Optional[HttpTask] = Field(default=None, alias="httpTask")
    json_parse_task: Optional[JsonParseTask] = Field(default=None, alias="jsonParseTask")

    @model_validator(mode="after")
    def check_exactly_one_kind(self) -> "Task":
        kinds = [kind for kind in (self.http_task, self.json_parse_task) if kind is not None]
        if len(kinds) != 1:
            raise ValueError("task must set exactly one of httpTask, jsonParseTask")
        return self

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def build_http_json_job(api_endpoint: str, api_json_path: str) -> list[Task]:
    """Fetch `api_endpoint`, then extract `api_json_path` from the JSON body."""
    return [
        Task(http_task=HttpTask(url=api_endpoint)),
        Task(json_parse_task=JsonParseTask(path=api_json_path)),
    ]


__all__ = ["HttpTask", "JsonParseTask", "Task", "build_http_json_job"]
