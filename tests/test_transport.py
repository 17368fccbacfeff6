# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
# pyright: reportUnknownVariableType=false, reportMissingParameterType=false
import threading
from unittest.mock import Mock, patch

import pytest
from requests.structures import CaseInsensitiveDict

from itwins_client.networking.config import ClientConfig
from itwins_client.networking.errors import (
    RedirectValidationError,
    RequestCancelledError,
)
from itwins_client.networking.transport import HttpTransport
from itwins_client.networking.types import RequestSpec


@pytest.fixture
def config():
    return ClientConfig(user_agent="TestAgent/1.0", timeout_seconds=5.0)


@pytest.fixture
def transport(config):
    return HttpTransport(config)


@pytest.fixture
def request_spec():
    return RequestSpec(
        method="GET",
        url="https://api.bentley.com/itwins",
        headers={"Authorization": "Bearer t"},
    )


def _mock_response(
    *,
    status: int = 200,
    headers: dict | None = None,
    history: list | None = None,
):
    response = Mock()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response.content = b""
    response.history = history or []
    return response


def test_init_sets_user_agent_and_redirect_bound(transport):
    assert transport._session.headers["User-Agent"] == "TestAgent/1.0"
    assert transport._session.max_redirects == 5


@patch("requests.Session.request")
def test_send_disables_redirects_by_default(mock_request, transport, request_spec):
    mock_request.return_value = _mock_response()

    transport.send(request_spec)

    mock_request.assert_called_once_with(
        "GET",
        "https://api.bentley.com/itwins",
        headers={"authorization": "Bearer t"},
        data=None,
        timeout=5.0,
        allow_redirects=False,
        verify=True,
    )


@patch("requests.Session.request")
def test_send_follow_mode(mock_request, transport, request_spec):
    mock_request.return_value = _mock_response()

    transport.send(request_spec, follow_redirects=True)

    assert mock_request.call_args.kwargs["allow_redirects"] is True


@patch("requests.Session.request")
def test_send_uses_connect_read_timeout_tuple(mock_request, request_spec):
    transport = HttpTransport(
        ClientConfig(connect_timeout_seconds=1.0, read_timeout_seconds=3.0)
    )
    mock_request.return_value = _mock_response()

    transport.send(request_spec)

    assert mock_request.call_args.kwargs["timeout"] == (1.0, 3.0)


@patch("requests.Session.request")
def test_send_respects_verify_tls_false(mock_request, request_spec):
    transport = HttpTransport(ClientConfig(verify_tls=False))
    mock_request.return_value = _mock_response()

    transport.send(request_spec)

    assert mock_request.call_args.kwargs["verify"] is False


@patch("requests.Session.request")
def test_send_refuses_when_cancelled(mock_request, transport, request_spec):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(RequestCancelledError):
        transport.send(request_spec, cancel_event=cancel)

    mock_request.assert_not_called()


@pytest.mark.parametrize("status", [301, 303, 307, 308])
def test_redirect_without_target_is_opaque(status):
    response = _mock_response(status=status)

    assert HttpTransport.is_opaque_redirect(response)
    assert not HttpTransport.is_explicit_redirect(response)


@pytest.mark.parametrize("status", [301, 302, 303, 307, 308])
def test_redirect_with_target_is_explicit(status):
    response = _mock_response(
        status=status, headers={"Location": "https://api.bentley.com/next"}
    )

    assert HttpTransport.is_explicit_redirect(response)
    assert not HttpTransport.is_opaque_redirect(response)


def test_302_without_location_is_still_explicit():
    response = _mock_response(status=302)

    assert HttpTransport.is_explicit_redirect(response)
    assert not HttpTransport.is_opaque_redirect(response)


@pytest.mark.parametrize("status", [200, 204, 304, 404, 500])
def test_non_redirect_statuses(status):
    response = _mock_response(
        status=status, headers={"Location": "https://api.bentley.com/next"}
    )

    assert not HttpTransport.is_opaque_redirect(response)
    assert not HttpTransport.is_explicit_redirect(response)


def test_was_redirected_reads_history():
    assert HttpTransport.was_redirected(_mock_response(history=[Mock()]))
    assert not HttpTransport.was_redirected(_mock_response())


def test_follow_mode_refuses_untrusted_hop_before_sending(
    transport, request_spec, mount_routes
):
    adapter = mount_routes(
        transport._session,
        {
            "https://api.bentley.com/itwins": (
                307,
                {"Location": "https://evil.com/steal"},
            ),
        },
    )

    with pytest.raises(RedirectValidationError, match="evil.com"):
        transport.send(request_spec, follow_redirects=True)

    assert adapter.sent_urls == ["https://api.bentley.com/itwins"]


def test_follow_mode_follows_trusted_hops(transport, request_spec, mount_routes):
    adapter = mount_routes(
        transport._session,
        {
            "https://api.bentley.com/itwins": (
                301,
                {"Location": "https://dev-api.bentley.com/itwins"},
            ),
            "https://dev-api.bentley.com/itwins": (200, {}, b'{"ok": true}'),
        },
    )

    response = transport.send(request_spec, follow_redirects=True)

    assert response.status_code == 200
    assert response.url == "https://dev-api.bentley.com/itwins"
    assert HttpTransport.was_redirected(response)
    assert adapter.sent_urls == [
        "https://api.bentley.com/itwins",
        "https://dev-api.bentley.com/itwins",
    ]


def test_follow_mode_checks_relative_targets_against_current_host(
    transport, request_spec, mount_routes
):
    adapter = mount_routes(
        transport._session,
        {
            "https://api.bentley.com/itwins": (308, {"Location": "/itwins/v2"}),
            "https://api.bentley.com/itwins/v2": (204, {}),
        },
    )

    response = transport.send(request_spec, follow_redirects=True)

    assert response.status_code == 204
    assert adapter.sent_urls[-1] == "https://api.bentley.com/itwins/v2"


def test_context_manager_closes_session(config):
    with patch("requests.Session.close") as mock_close:
        with HttpTransport(config):
            pass

    mock_close.assert_called_once()
