"""Remote authorization client protocol tests."""
import httpx
import pytest
from app.schemas import AuthorizationDecision, AuthorizationRequest
from app.services.cache_control import CachingAction, CachingDirective
from app.services.remote import RemoteAuthorizationClient
from tests.conftest import REMOTE_URL, TrackingStream

REQUEST = AuthorizationRequest(
    access="view", username="jdoe", patient_id="P0123456", patient_eid="PATIENT_1234"
)


@pytest.fixture
def remote(authority):
    client = RemoteAuthorizationClient(REMOTE_URL, http_client=authority.client(), clock=lambda: 1_000_000.0)
    yield client
    client.close()


class TestWireProtocol:
    """What goes out to the remote authority."""

    def test_single_json_post(self, remote, authority):
        remote.check_access(REQUEST)
        assert len(authority.requests) == 1
        sent = authority.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == REMOTE_URL
        assert sent.headers["content-type"] == "application/json"

    def test_payload_has_exactly_the_wire_keys(self, remote, authority):
        remote.check_access(REQUEST)
        assert authority.payloads[0] == {
            "access": "view",
            "username": "jdoe",
            "patient-id": "P0123456",
            "patient-eid": "PATIENT_1234",
        }

    def test_missing_external_id_is_sent_as_null(self, remote, authority):
        remote.check_access(AuthorizationRequest(access="edit", username="jdoe", patient_id="P1"))
        assert authority.payloads[0]["patient-eid"] is None
        assert set(authority.payloads[0]) == {"access", "username", "patient-id", "patient-eid"}


class TestStatusCodes:
    """How the response status maps to a decision."""

    def test_ok_grants(self, remote, authority):
        authority.respond(200)
        decision, directive = remote.check_access(REQUEST)
        assert decision is AuthorizationDecision.GRANTED
        assert directive.action is CachingAction.STORE_DEFAULT

    def test_forbidden_denies(self, remote, authority):
        authority.respond(403, {"Cache-Control": "max-age=120"})
        decision, directive = remote.check_access(REQUEST)
        assert decision is AuthorizationDecision.DENIED
        assert directive == CachingDirective.store(120)

    def test_headers_interpreted_for_grants(self, remote, authority):
        authority.respond(200, {"Cache-Control": "no-cache"})
        decision, directive = remote.check_access(REQUEST)
        assert decision is AuthorizationDecision.GRANTED
        assert directive.action is CachingAction.DO_NOT_STORE

    def test_expires_uses_injected_clock(self, remote, authority):
        authority.respond(200, {"Expires": "Mon, 12 Jan 1970 13:48:20 GMT"})  # 1_000_100
        _, directive = remote.check_access(REQUEST)
        assert directive == CachingDirective.store(100)

    @pytest.mark.parametrize("status_code", [201, 204, 301, 400, 401, 404, 500, 502, 503])
    def test_other_statuses_are_unknown(self, remote, authority, status_code):
        authority.respond(status_code, {"Cache-Control": "max-age=600"})
        decision, directive = remote.check_access(REQUEST)
        assert decision is AuthorizationDecision.UNKNOWN
        assert directive.action is CachingAction.DO_NOT_STORE


class TestTransportFailures:
    """Failures are reported as UNKNOWN, never raised."""

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
        httpx.RemoteProtocolError("malformed status line"),
        httpx.ReadError("connection reset"),
    ])
    def test_transport_errors(self, remote, authority, error):
        authority.fail_with(error)
        decision, directive = remote.check_access(REQUEST)
        assert decision is AuthorizationDecision.UNKNOWN
        assert directive.action is CachingAction.DO_NOT_STORE


class TestResponseRelease:
    """The response is closed on every path."""

    @pytest.mark.parametrize("status_code", [200, 403, 500])
    def test_response_closed(self, remote, authority, status_code):
        stream = TrackingStream()
        authority.respond(status_code, stream=stream)
        remote.check_access(REQUEST)
        assert stream.closed

    def test_close_failure_does_not_mask_decision(self, remote, authority):
        stream = TrackingStream(fail_on_close=True)
        authority.respond(403, {"Cache-Control": "max-age=30"}, stream=stream)
        decision, directive = remote.check_access(REQUEST)
        assert stream.closed
        assert decision is AuthorizationDecision.DENIED
        assert directive == CachingDirective.store(30)

    def test_injected_client_is_not_closed(self, authority):
        http_client = authority.client()
        remote = RemoteAuthorizationClient(REMOTE_URL, http_client=http_client)
        remote.close()
        assert not http_client.is_closed

    def test_owned_client_is_closed(self):
        remote = RemoteAuthorizationClient(REMOTE_URL, timeout=2.5)
        assert remote.http_client.timeout.connect == 2.5
        remote.close()
        assert remote.http_client.is_closed
