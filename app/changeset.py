"""
Changesets — validated, diff-style descriptions of a pending write.

A changeset is built by :func:`cast` from an entity and a mapping of raw
attributes.  Only the fields declared on the pydantic attrs schema are
read; the current entity values are merged with the incoming ones and
the merged set is validated, so an update that omits a field keeps the
stored value but an update that blanks a required field is rejected.

Building a changeset never touches the session.  The write functions in
``app.services`` return :class:`Ok` with the persisted entity or
:class:`Invalid` with the rejected changeset; validation failures are
values, not exceptions.
"""
from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT")
T = TypeVar("T")

BLANK = "can't be blank"
INVALID = "is invalid"


def _message(error: dict) -> str:
    kind = error["type"]
    if kind in ("missing", "blank"):
        return BLANK
    if kind == "string_too_long":
        return f"should be at most {error['ctx']['max_length']} character(s)"
    return INVALID


@dataclass
class Changeset(Generic[ModelT]):
    data: ModelT
    params: dict[str, Any]
    changes: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)
    action: str | None = None

    @property
    def valid(self) -> bool:
        return not self.errors

    def apply(self) -> ModelT:
        """Copy ``changes`` onto ``data`` and return it."""
        for name, value in self.changes.items():
            setattr(self.data, name, value)
        return self.data


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid(Generic[ModelT]):
    changeset: Changeset[ModelT]

    @property
    def errors(self) -> dict[str, list[str]]:
        return self.changeset.errors


def cast(
    data: ModelT,
    attrs: Mapping[str, Any] | None,
    schema: type[BaseModel],
) -> Changeset[ModelT]:
    """
    Validate *attrs* against *schema* on top of the current values of
    *data* and return the resulting changeset.

    Keys not declared on *schema* are ignored.  ``None`` and blank strings
    count as missing.  ``changes`` only holds fields whose validated value
    differs from what *data* already has.
    """
    fields = tuple(schema.model_fields)
    params = {str(key): value for key, value in (attrs or {}).items() if str(key) in fields}
    current = {name: getattr(data, name, None) for name in fields}

    merged = {name: value for name, value in {**current, **params}.items() if value is not None}
    changeset: Changeset[ModelT] = Changeset(data=data, params=params)

    try:
        validated = schema.model_validate(merged).model_dump()
    except ValidationError as exc:
        for error in exc.errors():
            name = str(error["loc"][0]) if error["loc"] else "base"
            changeset.errors.setdefault(name, []).append(_message(error))
        validated = params

    for name in params:
        if name in changeset.errors:
            continue
        value = validated.get(name)
        if value != current[name]:
            changeset.changes[name] = value
    return changeset
