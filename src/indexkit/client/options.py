"""Typed per-request options.

A single options object replaces loose dictionaries: headers, query string
parameters and JSON body parameters each have their own named setter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RequestOptions:
    """Extra headers, query parameters and body parameters for one request.

    Body parameters are merged into object bodies only. Writes whose body is a
    JSON array (synonym and rule batches) reject them with InvalidArgumentError.
    """

    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, Any] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)
    timeout: Optional[float] = None

    def add_header(self, name: str, value: str) -> RequestOptions:
        self.headers[name] = value
        return self

    def add_query_parameter(self, name: str, value: Any) -> RequestOptions:
        self.query[name] = value
        return self

    def add_body_parameter(self, name: str, value: Any) -> RequestOptions:
        self.body[name] = value
        return self

    def copy(self) -> RequestOptions:
        return RequestOptions(
            headers=dict(self.headers),
            query=dict(self.query),
            body=dict(self.body),
            timeout=self.timeout,
        )

    def has(self, name: str) -> bool:
        """Return True if `name` is already set as a query or body parameter."""
        return name in self.query or name in self.body


def with_options(options: Optional[RequestOptions]) -> RequestOptions:
    """Return a private copy of `options` (or a fresh instance) safe to modify."""
    return options.copy() if options is not None else RequestOptions()
