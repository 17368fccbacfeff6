"""Resource-level client for the iTwins service.

Every method is a thin wrapper: it assembles a URL, headers and body and
hands them to a RequestSender, which owns authentication, redirects and
response normalization.
"""

from __future__ import annotations

from typing import Any, Literal, Mapping

from .networking.config import ClientConfig
from .networking.sender import RequestSender
from .networking.types import Method, ResponseEnvelope
from .query import (
    ITWINS_GET_QUERY_PARAM_MAPPING,
    ITWINS_QUERY_PARAM_MAPPING,
    ODATA_PARAM_MAPPING,
    REPOSITORY_PARAM_MAPPING,
    build_query_string,
    with_query,
)

ResultMode = Literal["minimal", "representation"]
ImageContentType = Literal["image/png", "image/jpeg"]

PLATFORM_ACCEPT = "application/vnd.bentley.itwin-platform.v1+json"
DEFAULT_QUERY_SCOPE = "memberOfItwin"


def result_mode_headers(result_mode: ResultMode | None = None) -> dict[str, str]:
    return {"prefer": f"return={result_mode or 'minimal'}"}


def query_scope_headers(query_scope: str | None = None) -> dict[str, str]:
    return {"x-itwin-query-scope": query_scope or DEFAULT_QUERY_SCOPE}


def list_headers(args: Mapping[str, Any] | None = None) -> dict[str, str]:
    """Headers for iTwin list endpoints: query scope plus result mode."""
    args = args or {}
    return {
        **query_scope_headers(args.get("query_scope")),
        **result_mode_headers(args.get("result_mode")),
    }


class ITwinsClient:
    """Client for iTwins, favorites, recents, images, exports and repositories.

    The client composes a RequestSender instead of inheriting request
    behavior, so one sender (and its connection pool) can back several
    resource clients.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        sender: RequestSender | None = None,
    ) -> None:
        if sender is None:
            sender = RequestSender(config or ClientConfig())
        self._sender = sender
        self._base_url = sender.config.base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._sender.close()

    def __enter__(self) -> ITwinsClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _send(
        self,
        credential: str,
        method: Method,
        url: str,
        body: Any | None = None,
        headers: Mapping[str, str] | None = None,
        allow_redirects: bool = False,
    ) -> ResponseEnvelope[Any]:
        merged = {"accept": PLATFORM_ACCEPT, **(headers or {})}
        return self._sender.send(
            credential,
            method,
            url,
            body=body,
            headers=merged,
            allow_redirects=allow_redirects,
        )

    # --- iTwins ---

    def get_itwins(
        self, credential: str, args: Mapping[str, Any] | None = None
    ) -> ResponseEnvelope[Any]:
        """List iTwins, filtered with OData and iTwin query arguments.

        Args:
            credential: Access token, sent as the ``authorization`` header.
            args: Keys of ``ITWINS_GET_QUERY_PARAM_MAPPING`` plus
                ``result_mode`` and ``query_scope``.
        """
        query = build_query_string(ITWINS_GET_QUERY_PARAM_MAPPING, args)
        return self._send(
            credential,
            "GET",
            with_query(self._base_url, query),
            headers=list_headers(args),
        )

    def get_itwin(
        self,
        credential: str,
        itwin_id: str,
        result_mode: ResultMode | None = None,
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "GET",
            f"{self._base_url}/{itwin_id}",
            headers=result_mode_headers(result_mode),
        )

    def get_itwin_account(
        self,
        credential: str,
        itwin_id: str,
        result_mode: ResultMode | None = None,
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "GET",
            f"{self._base_url}/{itwin_id}/account",
            headers=result_mode_headers(result_mode),
        )

    def get_primary_account(self, credential: str) -> ResponseEnvelope[Any]:
        return self._send(
            credential, "GET", f"{self._base_url}/myprimaryaccount"
        )

    def create_itwin(
        self, credential: str, itwin: Mapping[str, Any]
    ) -> ResponseEnvelope[Any]:
        return self._send(credential, "POST", self._base_url, body=dict(itwin))

    def update_itwin(
        self, credential: str, itwin_id: str, itwin: Mapping[str, Any]
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "PATCH",
            f"{self._base_url}/{itwin_id}",
            body=dict(itwin),
        )

    def delete_itwin(
        self, credential: str, itwin_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(credential, "DELETE", f"{self._base_url}/{itwin_id}")

    # --- favorites and recents ---

    def get_favorites_itwins(
        self, credential: str, args: Mapping[str, Any] | None = None
    ) -> ResponseEnvelope[Any]:
        query = build_query_string(ITWINS_QUERY_PARAM_MAPPING, args)
        return self._send(
            credential,
            "GET",
            with_query(f"{self._base_url}/favorites", query),
            headers=result_mode_headers((args or {}).get("result_mode")),
        )

    def add_itwin_to_favorites(
        self, credential: str, itwin_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential, "POST", f"{self._base_url}/favorites/{itwin_id}"
        )

    def remove_itwin_from_favorites(
        self, credential: str, itwin_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential, "DELETE", f"{self._base_url}/favorites/{itwin_id}"
        )

    def get_recent_used_itwins(
        self, credential: str, args: Mapping[str, Any] | None = None
    ) -> ResponseEnvelope[Any]:
        """List recently used iTwins, most recent first (at most 25)."""
        query = build_query_string(ITWINS_QUERY_PARAM_MAPPING, args)
        return self._send(
            credential,
            "GET",
            with_query(f"{self._base_url}/recents", query),
            headers=result_mode_headers((args or {}).get("result_mode")),
        )

    def add_itwin_to_my_recents(
        self, credential: str, itwin_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential, "POST", f"{self._base_url}/recents/{itwin_id}"
        )

    # --- images ---

    def upload_itwin_image(
        self,
        credential: str,
        itwin_id: str,
        image: bytes,
        content_type: ImageContentType,
    ) -> ResponseEnvelope[Any]:
        """Upload a PNG or JPEG image; the bytes are sent unchanged."""
        return self._send(
            credential,
            "PUT",
            f"{self._base_url}/{itwin_id}/image",
            body=image,
            headers={"content-type": content_type},
        )

    def get_itwin_image(
        self, credential: str, itwin_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(credential, "GET", f"{self._base_url}/{itwin_id}/image")

    def delete_itwin_image(
        self, credential: str, itwin_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential, "DELETE", f"{self._base_url}/{itwin_id}/image"
        )

    # --- exports ---

    def create_export(
        self, credential: str, request: Mapping[str, Any]
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential, "POST", f"{self._base_url}/exports", body=dict(request)
        )

    def get_export(
        self, credential: str, export_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential, "GET", f"{self._base_url}/exports/{export_id}"
        )

    def get_exports(self, credential: str) -> ResponseEnvelope[Any]:
        return self._send(credential, "GET", f"{self._base_url}/exports")

    # --- repositories ---

    def _repositories_url(self, itwin_id: str) -> str:
        return f"{self._base_url}/{itwin_id}/repositories"

    def create_repository(
        self, credential: str, itwin_id: str, repository: Mapping[str, Any]
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "POST",
            self._repositories_url(itwin_id),
            body=dict(repository),
        )

    def get_repositories(
        self,
        credential: str,
        itwin_id: str,
        args: Mapping[str, Any] | None = None,
    ) -> ResponseEnvelope[Any]:
        """List repositories, optionally filtered by ``class_``/``sub_class``.

        Raises:
            ValueError: ``sub_class`` was given without ``class_``.
        """
        if args and args.get("sub_class") and not args.get("class_"):
            raise ValueError("sub_class filter requires class_")
        query = build_query_string(REPOSITORY_PARAM_MAPPING, args)
        return self._send(
            credential, "GET", with_query(self._repositories_url(itwin_id), query)
        )

    def get_repository(
        self, credential: str, itwin_id: str, repository_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "GET",
            f"{self._repositories_url(itwin_id)}/{repository_id}",
        )

    def update_repository(
        self,
        credential: str,
        itwin_id: str,
        repository_id: str,
        repository: Mapping[str, Any],
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "PATCH",
            f"{self._repositories_url(itwin_id)}/{repository_id}",
            body=dict(repository),
        )

    def delete_repository(
        self, credential: str, itwin_id: str, repository_id: str
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "DELETE",
            f"{self._repositories_url(itwin_id)}/{repository_id}",
        )

    # --- repository resources ---

    def _resources_url(self, itwin_id: str, repository_id: str) -> str:
        return f"{self._repositories_url(itwin_id)}/{repository_id}/resources"

    def create_repository_resource(
        self,
        credential: str,
        itwin_id: str,
        repository_id: str,
        resource: Mapping[str, Any],
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "POST",
            self._resources_url(itwin_id, repository_id),
            body=dict(resource),
        )

    def delete_repository_resource(
        self,
        credential: str,
        itwin_id: str,
        repository_id: str,
        resource_id: str,
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "DELETE",
            f"{self._resources_url(itwin_id, repository_id)}/{resource_id}",
        )

    def get_repository_resource(
        self,
        credential: str,
        itwin_id: str,
        repository_id: str,
        resource_id: str,
        result_mode: ResultMode | None = None,
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "GET",
            f"{self._resources_url(itwin_id, repository_id)}/{resource_id}",
            headers=result_mode_headers(result_mode),
        )

    def get_repository_resources(
        self,
        credential: str,
        itwin_id: str,
        repository_id: str,
        args: Mapping[str, Any] | None = None,
        result_mode: ResultMode | None = None,
    ) -> ResponseEnvelope[Any]:
        query = build_query_string(ODATA_PARAM_MAPPING, args)
        return self._send(
            credential,
            "GET",
            with_query(self._resources_url(itwin_id, repository_id), query),
            headers=result_mode_headers(result_mode),
        )

    def get_resource_graphics(
        self,
        credential: str,
        itwin_id: str,
        repository_id: str,
        resource_id: str,
    ) -> ResponseEnvelope[Any]:
        resource_url = (
            f"{self._resources_url(itwin_id, repository_id)}/{resource_id}"
        )
        return self._send(credential, "GET", f"{resource_url}/graphics")

    # Capability URIs may point at a federated service that answers with a
    # 302 to the owning host, so these are the calls that allow redirects.

    def get_repository_resources_by_uri(
        self,
        credential: str,
        uri: str,
        args: Mapping[str, Any] | None = None,
        result_mode: ResultMode | None = None,
    ) -> ResponseEnvelope[Any]:
        query = build_query_string(ODATA_PARAM_MAPPING, args)
        return self._send(
            credential,
            "GET",
            with_query(uri, query),
            headers=result_mode_headers(result_mode),
            allow_redirects=True,
        )

    def get_repository_resource_by_uri(
        self,
        credential: str,
        uri: str,
        result_mode: ResultMode | None = None,
    ) -> ResponseEnvelope[Any]:
        return self._send(
            credential,
            "GET",
            uri,
            headers=result_mode_headers(result_mode),
            allow_redirects=True,
        )

    def get_resource_graphics_by_uri(
        self, credential: str, uri: str
    ) -> ResponseEnvelope[Any]:
        return self._send(credential, "GET", uri, allow_redirects=True)
