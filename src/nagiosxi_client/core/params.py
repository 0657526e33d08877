"""
Form parameters for the Nagios XI API.

Nagios XI expects application/x-www-form-urlencoded fields. Configuration
records translate themselves into a FormParams instance through explicit
per-kind helpers:

  - add_str:  scalar string, skipped when empty ("empty means absent")
  - add_int:  integer, always included as its decimal form
  - add_list: list of strings, joined with "," into a single field
  - add_map:  free-form variables, one field per key

Usage:
    params = FormParams()
    params.add_str("host_name", "host1")
    params.add_list("contacts", ["nagiosadmin"])
    params.encode()  # 'host_name=host1&contacts=nagiosadmin'
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode


def bool_flag(value: bool) -> str:
    """Render a boolean the way Nagios toggles expect it ("1" / "0")."""
    return "1" if value else "0"


def join_list(values: Iterable[str]) -> str:
    return ",".join(values)


class FormParams:
    """Ordered multi-map of wire field name -> string value."""

    def __init__(self, pairs: Optional[Iterable[Tuple[str, str]]] = None) -> None:
        self._pairs: List[Tuple[str, str]] = []
        for name, value in pairs or ():
            self.add(name, value)

    # ------------- Raw access -------------

    def add(self, name: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"form value for '{name}' must be str, got {type(value).__name__}")
        self._pairs.append((name, value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        for k, v in self._pairs:
            if k == name:
                return v
        return default

    def get_all(self, name: str) -> List[str]:
        return [v for k, v in self._pairs if k == name]

    def items(self) -> List[Tuple[str, str]]:
        return list(self._pairs)

    def encode(self) -> str:
        # quote (not quote_plus): spaces must travel as %20
        return urlencode(self._pairs, quote_via=quote)

    # ------------- Per-kind helpers -------------

    def add_str(self, name: str, value: Optional[str]) -> None:
        if value:
            self.add(name, value)

    def add_int(self, name: str, value: Optional[int]) -> None:
        if value is None:
            return
        self.add(name, str(int(value)))

    def add_list(self, name: str, values: Optional[Iterable[str]]) -> None:
        # An empty (but not None) list still yields an empty field
        if values is None:
            return
        self.add(name, join_list(values))

    def add_map(self, values: Optional[Mapping[str, Any]]) -> None:
        if not values:
            return
        for key, val in values.items():
            if not isinstance(val, str):
                raise TypeError(
                    f"free variable '{key}' must be a string, got {type(val).__name__}"
                )
            self.add(key, val)

    # ------------- Dunder -------------

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, name: object) -> bool:
        return any(k == name for k, _ in self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormParams):
            return NotImplemented
        return self._pairs == other._pairs

    def __repr__(self) -> str:
        return f"FormParams({self._pairs!r})"
