from __future__ import annotations

import re


MESSAGE = "message"

_KIND_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")


def is_valid_kind(kind: object) -> bool:
    return isinstance(kind, str) and bool(_KIND_RE.match(kind))
