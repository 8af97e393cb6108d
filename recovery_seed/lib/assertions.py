"""Assertions and an in-memory assertion database.

Only the parts needed to seed a recovery system are modelled: typed
assertions identified by primary key, prerequisite checks on insertion,
revision ordering, batches and a YAML stream encoding. Signature
verification is not performed here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml

logger = logging.getLogger(__name__)

SERIES = "16"


class InvalidAssertionError(ValueError):
    pass


class RevisionError(InvalidAssertionError):
    def __init__(self, ref: "Ref", current: int, used: int) -> None:
        super().__init__(f"{ref}: revision {used} is not newer than current revision {current}")
        self.current = current
        self.used = used


class NotFoundError(LookupError):
    def __init__(self, type_name: str, headers: Mapping[str, Any]) -> None:
        hdrs = ", ".join(f"{k}={v}" for k, v in sorted(headers.items()))
        super().__init__(f"{type_name} assertion not found ({hdrs})")
        self.type_name = type_name
        self.headers = dict(headers)


@dataclass(frozen=True)
class AssertionType:
    name: str
    primary_key: Tuple[str, ...]
    # Lower commits first; prerequisites always have a lower rank.
    rank: int
    prerequisites: Callable[[Mapping[str, Any]], List["Ref"]] = field(
        default=lambda headers: [], compare=False, repr=False
    )


@dataclass(frozen=True)
class Ref:
    type: str
    primary_key: Tuple[str, ...]

    def __str__(self) -> str:
        return f"{self.type} ({'/'.join(self.primary_key)})"


ACCOUNT = AssertionType("account", ("account-id",), 0)
SNAP_DECLARATION = AssertionType(
    "snap-declaration",
    ("series", "snap-id"),
    1,
    lambda h: [Ref("account", (str(h["publisher-id"]),))],
)
SNAP_REVISION = AssertionType(
    "snap-revision",
    ("snap-sha3-384",),
    2,
    lambda h: [Ref("snap-declaration", (SERIES, str(h["snap-id"])))],
)
MODEL = AssertionType(
    "model",
    ("series", "brand-id", "model"),
    2,
    lambda h: [Ref("account", (str(h["brand-id"]),))],
)

ASSERTION_TYPES: Dict[str, AssertionType] = {
    t.name: t for t in (ACCOUNT, SNAP_DECLARATION, SNAP_REVISION, MODEL)
}

_REQUIRED_HEADERS: Dict[str, Tuple[str, ...]] = {
    "snap-declaration": ("snap-name", "publisher-id"),
    "snap-revision": ("snap-id", "snap-size", "snap-revision", "developer-id"),
    "model": ("architecture",),
}


@dataclass(frozen=True, eq=False)
class Assertion:
    headers: Dict[str, Any]
    body: str = ""

    def __post_init__(self) -> None:
        type_name = self.headers.get("type")
        if type_name not in ASSERTION_TYPES:
            raise InvalidAssertionError(f"unknown assertion type: {type_name!r}")
        atype = ASSERTION_TYPES[type_name]
        for key in atype.primary_key + _REQUIRED_HEADERS.get(type_name, ()):
            if self.headers.get(key) in (None, ""):
                raise InvalidAssertionError(f"{type_name} assertion: {key!r} header is mandatory")

    @property
    def type(self) -> str:
        return str(self.headers["type"])

    @property
    def assertion_type(self) -> AssertionType:
        return ASSERTION_TYPES[self.type]

    @property
    def primary_key(self) -> Tuple[str, ...]:
        return tuple(str(self.headers[k]) for k in self.assertion_type.primary_key)

    @property
    def ref(self) -> Ref:
        return Ref(self.type, self.primary_key)

    @property
    def revision(self) -> int:
        return int(self.headers.get("revision") or 0)

    def header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)

    def prerequisites(self) -> List[Ref]:
        return self.assertion_type.prerequisites(self.headers)

    def to_dict(self) -> Dict[str, Any]:
        d = dict(self.headers)
        if self.body:
            d["body"] = self.body
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Assertion":
        if not isinstance(data, Mapping):
            raise InvalidAssertionError(f"assertion must be a mapping, got {type(data).__name__}")
        headers = dict(data)
        body = str(headers.pop("body", "") or "")
        return cls(headers=headers, body=body)


def encode_stream(assertions: Iterable[Assertion]) -> str:
    return yaml.safe_dump_all(
        [a.to_dict() for a in assertions], sort_keys=False, explicit_start=True
    )


def decode_stream(text: str) -> List[Assertion]:
    return [Assertion.from_dict(doc) for doc in yaml.safe_load_all(text) if doc is not None]


class AssertionDatabase:
    """In-memory assertion store.

    ``trusted`` assertions are accepted without prerequisite checks and can
    never be replaced.
    """

    def __init__(self, trusted: Iterable[Assertion] = ()) -> None:
        self._store: Dict[Ref, Assertion] = {}
        self._trusted = set()
        for a in trusted:
            self._store[a.ref] = a
            self._trusted.add(a.ref)

    def __contains__(self, ref: Ref) -> bool:
        return ref in self._store

    def __len__(self) -> int:
        return len(self._store)

    def get(self, ref: Ref) -> Optional[Assertion]:
        return self._store.get(ref)

    def check(self, assertion: Assertion) -> None:
        missing = [str(r) for r in assertion.prerequisites() if r not in self._store]
        if missing:
            raise InvalidAssertionError(
                f"cannot add {assertion.ref}: missing prerequisites: {', '.join(missing)}"
            )

    def add(self, assertion: Assertion) -> None:
        ref = assertion.ref
        current = self._store.get(ref)
        if current is not None and assertion.revision <= current.revision:
            raise RevisionError(ref, current.revision, assertion.revision)
        if ref in self._trusted:
            raise InvalidAssertionError(f"cannot replace trusted assertion {ref}")
        self.check(assertion)
        self._store[ref] = assertion

    def find(self, type_name: str, headers: Mapping[str, Any]) -> Assertion:
        """Find by full primary key."""
        atype = ASSERTION_TYPES.get(type_name)
        if atype is None:
            raise InvalidAssertionError(f"unknown assertion type: {type_name!r}")
        try:
            key = tuple(str(headers[k]) for k in atype.primary_key)
        except KeyError as e:
            raise InvalidAssertionError(
                f"{type_name}: find requires primary key header {e.args[0]!r}"
            ) from e
        found = self._store.get(Ref(type_name, key))
        if found is None:
            raise NotFoundError(type_name, headers)
        for k, v in headers.items():
            if str(found.header(k)) != str(v):
                raise NotFoundError(type_name, headers)
        return found

    def find_many(self, type_name: str, headers: Mapping[str, Any]) -> List[Assertion]:
        found = [
            a
            for ref, a in self._store.items()
            if ref.type == type_name and all(str(a.header(k)) == str(v) for k, v in headers.items())
        ]
        if not found:
            raise NotFoundError(type_name, headers)
        return found


def fetch_with_prerequisites(db: AssertionDatabase, refs: Sequence[Ref]) -> List[Assertion]:
    """Collect the referenced assertions and everything they depend on.

    The result is de-duplicated and ordered so that prerequisites come first.
    """

    out: List[Assertion] = []
    seen: set = set()

    def visit(ref: Ref) -> None:
        if ref in seen:
            return
        seen.add(ref)
        a = db.get(ref)
        if a is None:
            raise NotFoundError(ref.type, dict(zip(ASSERTION_TYPES[ref.type].primary_key, ref.primary_key)))
        for pre in a.prerequisites():
            visit(pre)
        out.append(a)

    for r in refs:
        visit(r)
    return out


class Batch:
    """A set of assertions committed to a database in prerequisite order."""

    def __init__(self) -> None:
        self._added: Dict[Ref, Assertion] = {}

    def add(self, assertion: Assertion) -> Ref:
        self._added[assertion.ref] = assertion
        return assertion.ref

    def add_stream(self, text: str) -> List[Ref]:
        return [self.add(a) for a in decode_stream(text)]

    @property
    def refs(self) -> List[Ref]:
        return list(self._added)

    def commit_to(self, db: AssertionDatabase) -> None:
        pending = sorted(self._added.values(), key=lambda a: a.assertion_type.rank)
        for a in pending:
            try:
                db.add(a)
            except RevisionError:
                # Same or newer revision already present.
                logger.debug("Skipping %s: already in database", a.ref)
