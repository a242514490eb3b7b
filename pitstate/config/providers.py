"""State provider configuration.

Each state provider (a logical service type such as ``mongo`` or ``mysql``)
describes how containers built from its fixtures are started and how
readiness is detected.

Example (JSON, as accepted by ``STATE_PROVIDERS`` or a providers file)::

    {
        "mongo": {
            "cmd": ["--nojournal"],
            "ports": ["27017:30000"],
            "ready_pattern": ".*waiting for connections.*",
            "ready_timeout": "1s"
        }
    }
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple, Union

from pydantic import BaseModel, Field, field_validator

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse a duration into seconds.

    Accepts a plain number of seconds or a duration string made of
    number/unit pairs (``"1s"``, ``"250ms"``, ``"1m30s"``).
    """
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"Duration must not be negative: {value}")
        return float(value)

    text = value.strip()
    if not text:
        raise ValueError("Duration must not be empty")
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if seconds < 0:
            raise ValueError(f"Duration must not be negative: {value}")
        return seconds

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return total


@dataclass(frozen=True)
class PortBinding:
    """A container port published on the daemon host."""

    container_port: int
    host_port: Optional[int] = None  # None lets the daemon pick one
    protocol: str = "tcp"

    @property
    def key(self) -> str:
        return f"{self.container_port}/{self.protocol}"

    @classmethod
    def parse(cls, spec: str) -> "PortBinding":
        """Parse ``"<containerPort>[/proto][:<hostPort>]"``."""
        container_part, _, host_part = spec.strip().partition(":")
        port_text, _, protocol = container_part.partition("/")
        protocol = (protocol or "tcp").lower()
        if protocol not in ("tcp", "udp", "sctp"):
            raise ValueError(f"Unsupported protocol in port binding {spec!r}")
        try:
            container_port = int(port_text)
            host_port = int(host_part) if host_part else None
        except ValueError:
            raise ValueError(f"Invalid port binding {spec!r}")
        for port in (container_port, host_port):
            if port is not None and not 0 < port <= 65535:
                raise ValueError(f"Port out of range in binding {spec!r}")
        return cls(container_port=container_port, host_port=host_port, protocol=protocol)


class StateProviderConfig(BaseModel):
    """Start and readiness settings for one state provider."""

    cmd: List[str] = Field(
        default_factory=list,
        description="Arguments overriding the image command (empty keeps the image default)",
    )
    ports: List[str] = Field(
        default_factory=list,
        description='Port bindings as "<containerPort>[/proto]:<hostPort>"',
    )
    ready_pattern: Pattern[str] = Field(
        ..., description="Regular expression matched against container output"
    )
    ready_timeout: float = Field(
        default=30.0, description="Seconds to wait for the ready pattern"
    )

    @field_validator("ports")
    @classmethod
    def validate_ports(cls, v):
        """Reject bindings that cannot be parsed."""
        for spec in v:
            PortBinding.parse(spec)
        return v

    @field_validator("ready_timeout", mode="before")
    @classmethod
    def parse_ready_timeout(cls, v):
        """Accept duration strings such as "1s" or "500ms"."""
        return parse_duration(v)

    @property
    def command(self) -> Optional[List[str]]:
        """Command override, or None to keep the image default."""
        return list(self.cmd) if self.cmd else None

    @property
    def bindings(self) -> List[PortBinding]:
        return [PortBinding.parse(spec) for spec in self.ports]

    def exposed_ports(self) -> List[Tuple[int, str]]:
        """Container ports in the form the docker API expects."""
        return [(b.container_port, b.protocol) for b in self.bindings]

    def port_bindings(self) -> Dict[str, Optional[int]]:
        """Container port key to host port table."""
        return {b.key: b.host_port for b in self.bindings}
