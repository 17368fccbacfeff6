"""Query string helpers for the iTwins resource endpoints."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import quote

# Argument name -> query parameter name. Arguments mapped to "" are not
# part of the query string (they travel as headers instead).
ITWINS_QUERY_PARAM_MAPPING: Mapping[str, str] = {
    "sub_class": "subClass",
    "type": "type",
    "status": "status",
    "search": "$search",
    "display_name": "displayName",
    "number": "number",
    "top": "$top",
    "skip": "$skip",
    "parent_id": "parentId",
    "itwin_account_id": "iTwinAccountId",
    "include_inactive": "includeInactive",
    "result_mode": "",
    "query_scope": "",
}

ITWINS_GET_QUERY_PARAM_MAPPING: Mapping[str, str] = {
    **ITWINS_QUERY_PARAM_MAPPING,
    "filter": "$filter",
    "orderby": "$orderby",
    "select": "$select",
}

ODATA_PARAM_MAPPING: Mapping[str, str] = {
    "top": "$top",
    "skip": "$skip",
    "search": "$search",
}

REPOSITORY_PARAM_MAPPING: Mapping[str, str] = {
    "class_": "class",
    "sub_class": "subClass",
}

# Characters encodeURIComponent leaves alone on top of quote's defaults.
_URI_COMPONENT_SAFE = "!*'()"


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_string(
    mapping: Mapping[str, str], args: Mapping[str, Any] | None
) -> str:
    """Render ``args`` as ``name=value`` pairs joined with ``&``.

    Only names present in ``mapping`` are used, in mapping order. ``None``
    values are skipped, and values are percent-encoded the way
    ``encodeURIComponent`` does it.
    """
    if not args:
        return ""

    params: list[str] = []
    for arg_name, param_name in mapping.items():
        if param_name == "":
            continue
        value = args.get(arg_name)
        if value is None:
            continue
        encoded = quote(_render(value), safe=_URI_COMPONENT_SAFE)
        params.append(f"{param_name}={encoded}")
    return "&".join(params)


def with_query(url: str, query: str) -> str:
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"
