"""HTTP client for the remote authorization authority.

One POST per cache miss. The authority answers ``200 OK`` to grant and
``403 Forbidden`` to deny; anything else, or no answer at all, is UNKNOWN so
the caller can fall back to its own rights checking. Failures are logged,
never raised.
"""
import time
from typing import Callable, Optional, Tuple

import httpx

from app.core.logging_config import logger
from app.schemas import AuthorizationDecision, AuthorizationRequest
from app.services.cache_control import CachingDirective, DO_NOT_STORE, interpret_caching_headers

DEFAULT_TIMEOUT = 10.0

UNKNOWN_RESULT = (AuthorizationDecision.UNKNOWN, DO_NOT_STORE)

STATUS_DECISIONS = {
    httpx.codes.OK: AuthorizationDecision.GRANTED,
    httpx.codes.FORBIDDEN: AuthorizationDecision.DENIED,
}


class RemoteAuthorizationClient:
    """Sends access checks to the remote authority and reads its verdict."""

    def __init__(
        self,
        url: str,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self.url = url
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=timeout)
        self._clock = clock

    def check_access(self, request: AuthorizationRequest) -> Tuple[AuthorizationDecision, CachingDirective]:
        """Asks the remote authority about ``request``.

        Returns:
            The decision and how the cache should treat it. UNKNOWN always
            comes with DO_NOT_STORE.
        """
        response = None
        try:
            response = self.http_client.send(
                self.http_client.build_request("POST", self.url, json=request.to_payload()),
                stream=True,
            )
            decision = STATUS_DECISIONS.get(response.status_code)
            if decision is None:
                logger.warning(
                    f"Unexpected status {response.status_code} from authorization server "
                    f"for {request.username}/{request.access}/{request.patient_id}"
                )
                return UNKNOWN_RESULT
            directive = interpret_caching_headers(response.headers, now=self._clock())
            logger.info(
                f"Remote decision: {decision.value} for {request.username}/{request.access}/"
                f"{request.patient_id} ({directive.action.value})"
            )
            return decision, directive
        except httpx.ProtocolError as e:
            logger.warning(f"Bad authorization server, invalid HTTP communication: {e}")
            return UNKNOWN_RESULT
        except httpx.HTTPError as e:
            logger.warning(f"Failed to communicate with the authorization server: {e}", exc_info=True)
            return UNKNOWN_RESULT
        finally:
            if response is not None:
                self._release(response)

    def _release(self, response: httpx.Response) -> None:
        try:
            response.close()
        except Exception as e:
            # Must never replace the decision already computed
            logger.debug(f"Exception while closing HTTP response: {e}")

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()
