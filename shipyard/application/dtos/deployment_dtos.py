"""
Deployment DTOs

Architectural Intent:
- Data Transfer Objects for the facade's mutating endpoints
- Input validation at the application boundary raises ValidationError
- Decouples the JSON request bodies from the domain model
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from shipyard.domain.exceptions import ValidationError


def _require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")
    return payload


def _string_list(name: str, value: Any, allow_blank: bool = False) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(
        isinstance(v, str) and (allow_blank or v.strip()) for v in value
    ):
        raise ValidationError(f"{name} must be a list of strings")
    return tuple(value)


@dataclass(frozen=True)
class DeployRequest:
    version: Optional[str] = None
    servers: Optional[tuple[str, ...]] = None

    @staticmethod
    def from_payload(
        payload: Any, known_servers: Optional[Iterable[str]] = None
    ) -> "DeployRequest":
        body = _require_object(payload)
        version = body.get("version")
        if version is not None and (not isinstance(version, str) or not version.strip()):
            raise ValidationError("version must be a non-empty string")

        servers = body.get("servers")
        if servers is not None:
            servers = _string_list("servers", servers)
            if not servers:
                raise ValidationError("servers cannot be empty")
            if known_servers is not None:
                unknown = sorted(set(servers) - set(known_servers))
                if unknown:
                    raise ValidationError(f"unknown servers: {', '.join(unknown)}")

        return DeployRequest(version=version.strip() if version else None, servers=servers)


@dataclass(frozen=True)
class CommandRequest:
    command: str
    args: tuple[str, ...] = ()

    @staticmethod
    def from_payload(payload: Any) -> "CommandRequest":
        body = _require_object(payload)
        command = body.get("command")
        if not isinstance(command, str) or not command.strip():
            raise ValidationError("command must be a non-empty string")
        args = body.get("args")
        return CommandRequest(
            command=command.strip(),
            args=_string_list("args", args, allow_blank=True) if args is not None else (),
        )
