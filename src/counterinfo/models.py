"""Data model for counter samples.

A CounterDescriptor describes which counter exists, which dimensions it is
sliced by, which values were seen for those dimensions, and over what time
range it was observed. A Report is a batch of descriptors produced by one
data source, optionally carrying opaque request details.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted).

    Timestamps without an offset are taken to be UTC so that values from
    different reports can always be compared.

    Args:
        value: A datetime or an ISO format string.

    Returns:
        The parsed, timezone-aware datetime.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _string_list(value: Any, field_name: str) -> list[str]:
    """Validate a JSON list of strings."""
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"Invalid {field_name}: expected a list of strings, got {value!r}")
    return value


@dataclass(frozen=True)
class CounterKey:
    """Identity of a counter: its name and its set of dimension names."""

    name: str
    dimensions: frozenset[str]

    @classmethod
    def of(cls, name: str, dimensions: Iterable[str]) -> CounterKey:
        return cls(name=name, dimensions=frozenset(dimensions))


@dataclass
class CounterDescriptor:
    """Metadata describing one counter.

    Attributes:
        name: The counter name.
        dimensions: Dimension names the counter is sliced by.
        start_time: Earliest observation time.
        end_time: Latest observation time.
        dimension_values: Observed values per dimension name, if known.
    """

    name: str
    dimensions: list[str]
    start_time: datetime
    end_time: datetime
    dimension_values: dict[str, set[str]] | None = None

    @property
    def key(self) -> CounterKey:
        """The identity key for this counter.

        Computed on access; the time range and dimension values never
        take part in it.
        """
        return CounterKey.of(self.name, self.dimensions)

    def copy(self) -> CounterDescriptor:
        """Return a copy that shares no mutable containers with this one."""
        values = None
        if self.dimension_values is not None:
            values = {dim: set(vals) for dim, vals in self.dimension_values.items()}
        return CounterDescriptor(
            name=self.name,
            dimensions=list(self.dimensions),
            start_time=self.start_time,
            end_time=self.end_time,
            dimension_values=values,
        )

    def fix_dimension_values_case(self) -> None:
        """Collapse dimension value keys that differ only by letter case.

        The first casing seen for a dimension is kept and the value sets
        of the other casings are merged into it.
        """
        if not self.dimension_values:
            return

        fixed: dict[str, set[str]] = {}
        casings: dict[str, str] = {}
        for dim, values in self.dimension_values.items():
            folded = dim.casefold()
            if folded in casings:
                fixed[casings[folded]].update(values)
            else:
                casings[folded] = dim
                fixed[dim] = set(values)

        self.dimension_values = fixed

    def add_dimension_values(self, dimension: str, values: Iterable[str]) -> None:
        """Union values into the set stored for a dimension.

        The dimension is matched case-insensitively against existing keys
        and created if absent.

        Args:
            dimension: The dimension name.
            values: Values observed for the dimension.
        """
        if self.dimension_values is None:
            self.dimension_values = {}

        folded = dimension.casefold()
        for existing in self.dimension_values:
            if existing.casefold() == folded:
                self.dimension_values[existing].update(values)
                return

        self.dimension_values[dimension] = set(values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "name": self.name,
            "dimensions": list(self.dimensions),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }
        if self.dimension_values is not None:
            data["dimension_values"] = {
                dim: sorted(values) for dim, values in self.dimension_values.items()
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CounterDescriptor:
        """Create a CounterDescriptor from a dictionary.

        Args:
            data: Dictionary of descriptor fields.

        Returns:
            A CounterDescriptor instance.

        Raises:
            ValueError: If required fields are missing or malformed.
        """
        for required in ("name", "start_time", "end_time"):
            if required not in data:
                raise ValueError(f"Counter missing required field '{required}'")

        if not isinstance(data["name"], str):
            raise ValueError(f"Invalid name: expected a string, got {data['name']!r}")

        raw_values = data.get("dimension_values")
        values = None
        if raw_values is not None:
            if not isinstance(raw_values, dict):
                raise ValueError(
                    f"Invalid dimension_values: expected an object, got {raw_values!r}"
                )
            values = {
                dim: set(_string_list(vals, f"dimension_values['{dim}']"))
                for dim, vals in raw_values.items()
            }

        return cls(
            name=data["name"],
            dimensions=list(_string_list(data.get("dimensions", []), "dimensions")),
            start_time=parse_timestamp(data["start_time"]),
            end_time=parse_timestamp(data["end_time"]),
            dimension_values=values,
        )


@dataclass
class Report:
    """A batch of counter descriptors plus optional request details.

    Attributes:
        counters: Counter descriptors, unique by identity key.
        request_details: Opaque detail records, in arrival order.
    """

    counters: list[CounterDescriptor] = field(default_factory=list)
    request_details: list[Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {"counters": [c.to_dict() for c in self.counters]}
        if self.request_details is not None:
            data["request_details"] = list(self.request_details)
        return data

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Report:
        """Deserialize from dictionary.

        Args:
            data: Dictionary with report data.

        Returns:
            Report instance.
        """
        counters = [CounterDescriptor.from_dict(c) for c in data.get("counters", [])]
        details = data.get("request_details")
        return cls(
            counters=counters,
            request_details=list(details) if details is not None else None,
        )
