"""zuultail core domain models.

Defines the :class:`Build` and :class:`Artifact` records returned by the
Zuul ``/builds`` endpoint, together with their wire rules:

* ``start_time`` / ``end_time`` travel as ``YYYY-MM-DDTHH:MM:SS`` in UTC,
  without fractional seconds and without a trailing ``Z``.
* ``duration`` is sometimes sent as a float (``82.0``); it is truncated
  toward zero to whole seconds, clamped to ``[0, 2**32 - 1]`` and always
  re-encoded as an integer.
* Unknown members are ignored so newer servers do not break old clients.

Typical usage::

    from zuultail.core.models import decode_build

    build = decode_build(response.json()[0])
    print(build.uuid, build.job_name, build.result)
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from functools import total_ordering
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
)

from zuultail.core.exceptions import DecodeError

__all__ = [
    "MAX_DURATION",
    "WIRE_TIME_FORMAT",
    "Artifact",
    "Build",
    "decode_build",
]

#: Timestamp layout used by the API (Python ``isoformat`` minus the zone).
WIRE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

#: Largest duration kept, in seconds; the field is an unsigned 32-bit count.
MAX_DURATION = 2**32 - 1


def _parse_wire_time(value: object) -> object:
    """Parse a wire timestamp into an aware UTC :class:`datetime`.

    Only the wire string is accepted from payloads; :class:`datetime`
    instances pass through for builds constructed in code.  Numbers are
    rejected rather than read as Unix epochs.
    """
    if isinstance(value, str):
        return datetime.strptime(value, WIRE_TIME_FORMAT).replace(tzinfo=UTC)
    if isinstance(value, datetime):
        return value
    raise ValueError(f"expected a {WIRE_TIME_FORMAT} string, got {type(value).__name__}")


def _order_key(model: BaseModel) -> tuple[tuple[bool, Any], ...]:
    """Field-wise sort key; ``None`` sorts before any present value."""
    return tuple(
        (value is not None, value)
        for value in (getattr(model, name) for name in type(model).model_fields)
    )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@total_ordering
class Artifact(BaseModel):
    """A build artifact reference.

    Attributes:
        name: Display name (e.g. ``"Zuul Manifest"``).
        url: Location of the artifact.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    url: str

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Artifact):
            return NotImplemented
        return _order_key(self) < _order_key(other)


@total_ordering
class Build(BaseModel):
    """A completed Zuul build.

    The model is **frozen** so builds can be hashed, put in sets and shared
    between coroutines.  Equality and ordering cover every field, in
    declaration order; the stream engine itself only keys on :attr:`uuid`.

    Attributes:
        uuid: Unique build identifier.
        job_name: The job name.
        result: Job result (``SUCCESS``, ``FAILURE``, ...).
        start_time: Start time (UTC, second precision).
        end_time: End time (UTC, second precision).
        duration: Duration in whole seconds.
        voting: Whether the job votes on the change.
        log_url: Log location, when the job uploaded logs.
        artifacts: Build artifacts, in server order.
        project: The change's project name.
        branch: The change's branch name.
        pipeline: The pipeline that ran the build.
        change: Change (or PR) number.
        patchset: Patchset number (or PR commit).
        change_ref: The change ref; ``ref`` on the wire.
        event_id: Internal event id.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    uuid: str
    job_name: str
    result: str
    start_time: datetime
    end_time: datetime
    duration: int = Field(..., ge=0)
    voting: bool
    log_url: str | None = None
    artifacts: tuple[Artifact, ...] = ()
    project: str
    branch: str
    pipeline: str
    change: int | None = Field(None, ge=0)
    patchset: str | None = None
    change_ref: str = Field(..., alias="ref")
    event_id: str

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, v: object) -> object:
        return _parse_wire_time(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def _drop_sub_seconds(cls, v: datetime) -> datetime:
        """Normalise to aware UTC at second precision."""
        if v.tzinfo is None:
            v = v.replace(tzinfo=UTC)
        return v.astimezone(UTC).replace(microsecond=0)

    @field_validator("duration", mode="before")
    @classmethod
    def _truncate_duration(cls, v: object) -> object:
        """Truncate a numeric duration to whole seconds within ``[0, MAX_DURATION]``."""
        if isinstance(v, bool) or not isinstance(v, int | float):
            raise ValueError(f"duration must be a number, got {type(v).__name__}")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError(f"duration must be finite, got {v!r}")
        return min(max(int(v), 0), MAX_DURATION)

    # ------------------------------------------------------------------
    # Serialisers
    # ------------------------------------------------------------------

    @field_serializer("start_time", "end_time")
    def _format_time(self, v: datetime) -> str:
        return v.astimezone(UTC).strftime(WIRE_TIME_FORMAT)

    # ------------------------------------------------------------------
    # Ordering / wire helpers
    # ------------------------------------------------------------------

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Build):
            return NotImplemented
        return _order_key(self) < _order_key(other)

    def to_wire(self) -> dict[str, Any]:
        """Return the build encoded the way the API sends it."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode_build(raw: Any) -> Build:
    """Decode one element of a ``/builds`` response.

    Args:
        raw: A JSON-decoded object.

    Returns:
        The decoded :class:`Build`.

    Raises:
        DecodeError: If *raw* is not a valid build object.  The error keeps
            *raw* so callers can log the offending payload.
    """
    try:
        return Build.model_validate(raw)
    except ValidationError as exc:
        reason = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise DecodeError(raw, reason) from exc
