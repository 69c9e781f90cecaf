"""Tool descriptor and argument contract for the pull request diff tool."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

GET_PR_DIFF_TOOL_NAME = "get_pr_diff"
GET_PR_DIFF_TOOL_DESCRIPTION = "Get the diff of a pull request"
GET_PR_DIFF_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "owner": {
            "type": "string",
            "description": "The owner of the repository",
        },
        "repo": {
            "type": "string",
            "description": "The repository name",
        },
        "pullNumber": {
            "type": "number",
            "description": "The pull request number",
        },
    },
    "required": ["owner", "repo", "pullNumber"],
}


class PullRequestDiffArgs(BaseModel):
    """Validated arguments for one ``get_pr_diff`` call."""

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    owner: str = Field(min_length=1, strict=True)
    repo: str = Field(min_length=1, strict=True)
    pull_number: int = Field(alias="pullNumber", ge=1)

    @field_validator("owner", "repo")
    @classmethod
    def validate_path_segment(cls, value: str) -> str:
        """Reject blank names and names that would escape their URL segment."""
        if not value.strip():
            raise ValueError("must not be blank")
        if "/" in value:
            raise ValueError("must not contain '/'")
        if value in {".", ".."}:
            raise ValueError("must be a single path segment")
        return value

    @field_validator("pull_number", mode="before")
    @classmethod
    def validate_pull_number_is_number(cls, value: object) -> object:
        """Accept JSON numbers only; integral floats collapse to int."""
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValueError("must be a number")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError("must be a whole number")
            return int(value)
        return value


@dataclass(frozen=True, slots=True)
class ArgumentsValid:
    """Successful validation result."""

    args: PullRequestDiffArgs
    ok: bool = True


@dataclass(frozen=True, slots=True)
class ArgumentsInvalid:
    """Failed validation result with one message per offending field."""

    errors: tuple[str, ...]
    ok: bool = False

    @property
    def message(self) -> str:
        return "Invalid arguments: " + "; ".join(self.errors)


ArgumentsResult = ArgumentsValid | ArgumentsInvalid


def _format_validation_error(error: ValidationError) -> tuple[str, ...]:
    messages: list[str] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "arguments"
        messages.append(f"{location}: {detail['msg']}")
    return tuple(messages)


def validate_tool_arguments(arguments: object) -> ArgumentsResult:
    """Validate raw tool-call arguments without raising."""
    if not isinstance(arguments, Mapping):
        return ArgumentsInvalid(errors=("arguments: expected an object",))
    try:
        args = PullRequestDiffArgs.model_validate(dict(arguments))
    except ValidationError as error:
        return ArgumentsInvalid(errors=_format_validation_error(error))
    return ArgumentsValid(args=args)
