import pytest

from itwins_client.networking.types import (
    ApiError,
    ErrorDetail,
    RequestSpec,
    ResponseEnvelope,
)


def test_envelope_rejects_data_and_error_together():
    with pytest.raises(ValueError):
        ResponseEnvelope(
            status=200, data={"a": 1}, error=ApiError(code="c", message="m")
        )


def test_envelope_ok_follows_error():
    assert ResponseEnvelope(status=204).ok
    assert not ResponseEnvelope(
        status=404, error=ApiError(code="c", message="m")
    ).ok


def test_request_spec_headers_are_lower_cased_and_read_only():
    spec = RequestSpec(
        method="GET", url="https://api.bentley.com", headers={"X-Test": "1"}
    )

    assert dict(spec.headers) == {"x-test": "1"}
    with pytest.raises(TypeError):
        spec.headers["x-test"] = "2"  # type: ignore[index]


def test_request_spec_copies_external_headers_input():
    headers = {"x-test": "1"}
    spec = RequestSpec(method="GET", url="https://api.bentley.com", headers=headers)
    headers["x-test"] = "2"

    assert spec.headers["x-test"] == "1"


def test_with_url_builds_new_spec():
    spec = RequestSpec(
        method="POST",
        url="https://api.bentley.com/a",
        headers={"authorization": "t"},
        body="{}",
    )

    moved = spec.with_url("https://dev-api.bentley.com/b", {"X-Api-Key": "k"})

    assert moved.url == "https://dev-api.bentley.com/b"
    assert moved.method == "POST"
    assert moved.body == "{}"
    assert dict(moved.headers) == {"authorization": "t", "x-api-key": "k"}
    assert spec.url == "https://api.bentley.com/a"
    assert "x-api-key" not in spec.headers


def test_api_error_from_dict_ignores_malformed_details():
    error = ApiError.from_dict(
        {
            "code": "c",
            "message": "m",
            "details": [{"code": "d", "message": "dm"}, "junk"],
            "target": 3,
        }
    )

    assert error.details == (ErrorDetail(code="d", message="dm"),)
    assert error.target is None
