from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from .assertions import SERIES, Assertion, InvalidAssertionError

GRADE_UNSET = "unset"
RECOVERY_GRADES = ("dangerous", "signed", "secured")

PRESENCE_REQUIRED = "required"
PRESENCE_OPTIONAL = "optional"


@dataclass(frozen=True)
class ModelSnap:
    """One entry of the model's ``snaps`` header."""

    name: str
    snap_id: str = ""
    type: str = "app"
    presence: str = PRESENCE_REQUIRED
    default_channel: str = ""
    modes: Tuple[str, ...] = ("run",)

    @classmethod
    def from_header(cls, entry: Mapping[str, Any]) -> "ModelSnap":
        if not isinstance(entry, Mapping) or not entry.get("name"):
            raise InvalidAssertionError(f"model: invalid snaps entry {entry!r}")
        presence = str(entry.get("presence") or PRESENCE_REQUIRED)
        if presence not in (PRESENCE_REQUIRED, PRESENCE_OPTIONAL):
            raise InvalidAssertionError(
                f"model: snap {entry['name']!r} has invalid presence {presence!r}"
            )
        return cls(
            name=str(entry["name"]),
            snap_id=str(entry.get("id") or ""),
            type=str(entry.get("type") or "app"),
            presence=presence,
            default_channel=str(entry.get("default-channel") or ""),
            modes=tuple(entry.get("modes") or ("run",)),
        )


@dataclass(frozen=True)
class Model:
    assertion: Assertion

    def __post_init__(self) -> None:
        if self.assertion.type != "model":
            raise InvalidAssertionError(f"expected a model assertion, got {self.assertion.type}")

    @classmethod
    def from_headers(cls, headers: Mapping[str, Any]) -> "Model":
        h: Dict[str, Any] = {"type": "model", "series": SERIES}
        h.update(headers)
        return cls(Assertion(headers=h))

    @property
    def brand_id(self) -> str:
        return str(self.assertion.header("brand-id"))

    @property
    def model(self) -> str:
        return str(self.assertion.header("model"))

    @property
    def architecture(self) -> str:
        return str(self.assertion.header("architecture"))

    @property
    def base(self) -> str:
        return str(self.assertion.header("base") or "")

    @property
    def grade(self) -> str:
        return str(self.assertion.header("grade") or GRADE_UNSET)

    @property
    def recovery_capable(self) -> bool:
        return self.grade in RECOVERY_GRADES

    @property
    def snaps(self) -> List[ModelSnap]:
        raw = self.assertion.header("snaps") or []
        if not isinstance(raw, list):
            raise InvalidAssertionError("model: snaps header must be a list")
        return [ModelSnap.from_header(e) for e in raw]

    def __str__(self) -> str:
        return f"{self.brand_id}/{self.model}"
