"""Value types shared by the iTwins networking layer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Generic, Literal, Mapping, TypeVar, Union

Method = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying a value and optional metadata."""

    value: T
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed result carrying an error and optional metadata."""

    error: E
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]


def _frozen_headers(headers: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType({k.lower(): v for k, v in (headers or {}).items()})


@dataclass(frozen=True)
class RequestSpec:
    """One outgoing request, rebuilt for every redirect hop."""

    method: Method
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _frozen_headers(self.headers))

    def with_url(
        self, url: str, extra_headers: Mapping[str, str] | None = None
    ) -> RequestSpec:
        """Return a copy aimed at ``url`` with ``extra_headers`` merged in."""
        headers = dict(self.headers)
        headers.update(_frozen_headers(extra_headers))
        return replace(self, url=url, headers=headers)


@dataclass(frozen=True)
class ErrorDetail:
    code: str
    message: str
    target: str | None = None


@dataclass(frozen=True)
class ApiError:
    """Error object in the shape the iTwins service returns.

    ``code`` is a stable machine-readable tag; ``message`` is meant for
    humans and never carries raw exception text.
    """

    code: str
    message: str
    details: tuple[ErrorDetail, ...] | None = None
    target: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ApiError:
        """Build an ApiError from an already shape-checked error object."""
        details = payload.get("details")
        parsed_details: tuple[ErrorDetail, ...] | None = None
        if isinstance(details, list):
            parsed_details = tuple(
                ErrorDetail(
                    code=str(item.get("code", "")),
                    message=str(item.get("message", "")),
                    target=item.get("target"),
                )
                for item in details
                if isinstance(item, Mapping)
            )
        target = payload.get("target")
        return cls(
            code=payload["code"],
            message=payload["message"],
            details=parsed_details,
            target=target if isinstance(target, str) else None,
        )


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """Uniform outcome of a call: an HTTP status plus data or error."""

    status: int
    data: T | None = None
    error: ApiError | None = None

    def __post_init__(self) -> None:
        if self.data is not None and self.error is not None:
            raise ValueError("envelope cannot carry both data and error")

    @property
    def ok(self) -> bool:
        return self.error is None
