"""Drop event record and its category."""

from dataclasses import dataclass, field
from enum import Enum

PORT_KEY = "DPT="
PROTO_KEY = "PROTO="


class Category(Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True)
class DropEvent:
    category: Category
    prefix: str                 # tokens 0-2, e.g. "Oct 19 01:29:00"
    source: str | None = None   # token 9, the SRC= field on netfilter lines
    markers: tuple[str, ...] = field(default_factory=tuple)  # PROTO=/DPT= tokens after it
    raw: str = ""

    def _fields(self) -> list[str]:
        fields = [] if self.source is None else [self.source]
        fields.extend(self.markers)
        return fields

    @property
    def port(self) -> str | None:
        """Destination port value, or None when the line carried no DPT= field."""
        for token in self._fields():
            if PORT_KEY in token:
                return token.split(PORT_KEY, 1)[1]
        return None

    @property
    def protocol(self) -> str | None:
        found = None
        for token in self._fields():
            if PORT_KEY in token:
                break
            if PROTO_KEY in token:
                found = token.split(PROTO_KEY, 1)[1]
        return found

    @property
    def summary(self) -> str:
        return " ".join([self.prefix] + self._fields())
