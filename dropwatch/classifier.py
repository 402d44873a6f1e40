"""Line classifier: turns one raw log line into a DropEvent, or nothing.

Expected netfilter line as written by journalctl (space delimited):
    Oct 19 01:29:00 gw kernel: INTERNAL_DROPPED: IN=eth0 OUT= MAC=... SRC=10.0.0.7 DST=... PROTO=TCP SPT=51234 DPT=22 ...

Token 5 is the log prefix of the firewall rule, token 9 the source address.
"""

from dropwatch.models import PORT_KEY, PROTO_KEY, Category, DropEvent

MIN_TOKENS = 6
MARKER_INDEX = 5
PREFIX_TOKENS = 3
SOURCE_INDEX = 9

DEFAULT_MARKERS: dict[str, Category] = {
    "EXTERNAL_DROPPED:": Category.EXTERNAL,
    "INTERNAL_DROPPED:": Category.INTERNAL,
}


class MalformedLineError(ValueError):
    """Line too short to carry a marker token."""

    def __init__(self, token_count: int):
        super().__init__(f"malformed line: {token_count} token(s), need at least {MIN_TOKENS}")
        self.token_count = token_count


def classify_line(line: str, markers: dict[str, Category] | None = None) -> DropEvent | None:
    """Return the DropEvent for a drop line, None for any other line.

    Raises MalformedLineError when the line has fewer than six tokens.
    """
    if markers is None:
        markers = DEFAULT_MARKERS

    text = line.rstrip("\r\n")
    tokens = text.split(" ")
    if len(tokens) < MIN_TOKENS:
        raise MalformedLineError(len(tokens))

    category = markers.get(tokens[MARKER_INDEX])
    if category is None:
        return None

    prefix = " ".join(tokens[:PREFIX_TOKENS])
    if len(tokens) <= SOURCE_INDEX:
        return DropEvent(category=category, prefix=prefix, raw=text)

    source = tokens[SOURCE_INDEX]
    kept: list[str] = []
    if PORT_KEY not in source:
        for token in tokens[SOURCE_INDEX + 1:]:
            if PORT_KEY in token:
                kept.append(token)
                break
            if PROTO_KEY in token:
                kept.append(token)

    return DropEvent(category=category, prefix=prefix, source=source, markers=tuple(kept), raw=text)
