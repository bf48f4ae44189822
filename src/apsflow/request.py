"""Phase 1: Request descriptors and URL templating."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import string
from typing import Any, Literal
from urllib.parse import quote

from apsflow.errors import InternalError

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]
BodyEncoding = Literal["json", "raw", "none"]
QueryValue = str | int | float | bool

# Same reserved set as encodeURIComponent: everything but these is escaped.
_SEGMENT_SAFE = "!~*'()"


@dataclass(frozen=True)
class RequestDescriptor:
    """A fully resolved HTTP request, ready for a transport."""

    method: HttpMethod
    url: str
    query: dict[str, QueryValue] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: str | bytes | dict[str, Any] | list[Any] | None = None
    body_encoding: BodyEncoding = "none"
    #: Ask the transport for the raw response bytes instead of text.
    expect_binary: bool = False

    def __post_init__(self) -> None:
        """Reject descriptors whose body and encoding disagree."""
        if self.body_encoding == "none" and self.body is not None:
            raise InternalError(
                "body_encoding='none' cannot carry a body",
                hint="This is an apsflow internal error. Please report it.",
            )
        if self.body_encoding == "raw" and not isinstance(self.body, bytes):
            raise InternalError(
                "body_encoding='raw' requires a bytes body",
                hint="This is an apsflow internal error. Please report it.",
            )

    def summary(self) -> str:
        """Return a one-line description safe for logs (no body content)."""
        query = "&".join(f"{k}={v}" for k, v in self.query.items())
        target = f"{self.url}?{query}" if query else self.url
        size = len(self.body) if isinstance(self.body, bytes) else None
        body_note = f" body={self.body_encoding}" if self.body is not None else ""
        size_note = f" ({size} bytes)" if size is not None else ""
        return f"{self.method} {target}{body_note}{size_note}"


def encode_path_segment(value: str) -> str:
    """Percent-encode one path parameter, including any ``/`` it contains."""
    return quote(str(value), safe=_SEGMENT_SAFE)


def merge_headers(*layers: Mapping[str, str]) -> dict[str, str]:
    """Merge header layers left to right; later layers replace earlier names.

    Header names compare case-insensitively, so ``region`` replaces ``Region``.
    """
    merged: dict[str, str] = {}
    for layer in layers:
        for name, value in layer.items():
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
    return merged


def build_url(base_url: str, template: str, **segments: str) -> str:
    """Render *template* under *base_url*, encoding each segment individually.

    The template's own ``/`` separators are preserved; only substituted values
    are escaped. Every placeholder must be supplied.

    Example:
        build_url(base, "/project/v1/hubs/{hubId}/projects", hubId="b.1/2")
        # -> f"{base}/project/v1/hubs/b.1%2F2/projects"
    """
    fields = {name for _, name, _, _ in string.Formatter().parse(template) if name}
    missing = fields - segments.keys()
    if missing:
        raise InternalError(
            f"URL template {template!r} is missing segment(s): {sorted(missing)}",
            hint="This is an apsflow internal error. Please report it.",
        )
    encoded = {name: encode_path_segment(segments[name]) for name in fields}
    return base_url.rstrip("/") + template.format(**encoded)
