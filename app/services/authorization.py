"""Authorization checks backed by a remote authority and a local decision cache."""
from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from app import crud
from app import schemas
from app.core import config
from app.core.exceptions import ConfigurationError
from app.core.logging_config import logger
from app.schemas import AuthorizationDecision, AuthorizationRequest
from app.services.cache import DecisionCache, build_decision_cache, get_cache_key
from app.services.cache_control import CachingAction, CachingDirective
from app.services.remote import DEFAULT_TIMEOUT, RemoteAuthorizationClient


@dataclass(frozen=True)
class CheckResult:
    decision: AuthorizationDecision
    cached: bool = False


def validate_remote_url(url: Optional[str]) -> str:
    """Makes sure the remote authority URL is usable.

    Raises:
        ConfigurationError: If the URL is blank or not an absolute http(s) URL.
    """
    if url is None or not url.strip():
        raise ConfigurationError(
            f"{RemoteAuthorizationService.__name__} requires a valid URL to be configured "
            f"under the {config.REMOTE_AUTHORIZATION_URL_KEY} key"
        )
    url = url.strip()
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(
            f"Invalid URL configured for {RemoteAuthorizationService.__name__}: {url}"
        ) from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"Invalid URL configured for {RemoteAuthorizationService.__name__}: {url}")
    return url


class RemoteAuthorizationService:
    """Answers access checks from the cache, asking the remote authority on a miss.

    This service is the only writer of its cache. GRANTED and DENIED answers
    are stored according to the authority's caching headers; UNKNOWN answers
    never touch the cache, so flushing it only costs extra round trips.
    """

    def __init__(
        self,
        url: Optional[str],
        cache: Optional[DecisionCache] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = validate_remote_url(url)
        self.cache = cache if cache is not None else build_decision_cache()
        self.client = RemoteAuthorizationClient(self.url, http_client=http_client, timeout=timeout)
        logger.info(f"Remote authorization service initialized for {self.url}")

    @classmethod
    def from_config(cls, http_client: Optional[httpx.Client] = None) -> "RemoteAuthorizationService":
        """Builds the service from app.core.config.

        Raises:
            ConfigurationError: Missing or invalid REMOTE_AUTHORIZATION_URL.
            CacheProvisioningError: The configured cache can't be created.
        """
        url = validate_remote_url(config.REMOTE_AUTHORIZATION_URL)
        cache = build_decision_cache(
            backend=config.CACHE_BACKEND,
            max_size=config.CACHE_MAX_SIZE,
            default_ttl=config.CACHE_DEFAULT_TTL,
        )
        return cls(url, cache=cache, http_client=http_client, timeout=config.REMOTE_AUTHORIZATION_TIMEOUT)

    def check(self, request: AuthorizationRequest) -> CheckResult:
        """Resolves one access check, from the cache when possible."""
        if not request.username or not request.access or not request.patient_id:
            logger.debug("Incomplete authorization request, no opinion")
            return CheckResult(AuthorizationDecision.UNKNOWN)

        try:
            cache_key = get_cache_key(request.username, request.access, request.patient_id)
        except ValueError as e:
            # Ambiguous key: still ask the authority, just don't cache the answer
            logger.warning(f"Bypassing decision cache: {e}")
            cache_key = None

        if cache_key is not None:
            cached_decision = self.cache.get(cache_key)
            if cached_decision is not None:
                logger.debug(f"Cache HIT: {cache_key}")
                return CheckResult(AuthorizationDecision.from_bool(cached_decision), cached=True)
            logger.debug(f"Cache MISS: {cache_key}")

        decision, directive = self.client.check_access(request)
        if decision is not AuthorizationDecision.UNKNOWN and cache_key is not None:
            self._apply_directive(cache_key, decision, directive)
        return CheckResult(decision)

    def has_access(
        self,
        username: Optional[str],
        access: Optional[str],
        patient_id: Optional[str],
        patient_eid: Optional[str] = None,
    ) -> Optional[bool]:
        """True if granted, False if denied, None if the authority had no opinion."""
        if not username or not access or not patient_id:
            return None
        request = AuthorizationRequest(
            username=username, access=access, patient_id=patient_id, patient_eid=patient_eid
        )
        return self.check(request).decision.as_bool()

    def _apply_directive(self, cache_key: str, decision: AuthorizationDecision, directive: CachingDirective):
        value = decision.as_bool()
        if directive.action is CachingAction.STORE:
            self.cache.put(cache_key, value, directive.ttl)
            logger.debug(f"Cache SET: {cache_key} (TTL: {directive.ttl}s)")
        elif directive.action is CachingAction.STORE_DEFAULT:
            self.cache.put(cache_key, value)
            logger.debug(f"Cache SET: {cache_key} (default TTL)")
        else:
            self.cache.remove(cache_key)
            logger.debug(f"Cache DELETE: {cache_key}")

    def close(self) -> None:
        self.client.close()


REASONS = {
    (AuthorizationDecision.GRANTED, True): "Granted (cached decision).",
    (AuthorizationDecision.DENIED, True): "Denied (cached decision).",
    (AuthorizationDecision.GRANTED, False): "Granted by the remote authority.",
    (AuthorizationDecision.DENIED, False): "Denied by the remote authority.",
    (AuthorizationDecision.UNKNOWN, False): "No opinion from the remote authority; apply local rights.",
}


def authorize_request(
    request: schemas.AccessCheckRequest,
    service: RemoteAuthorizationService,
    db: Session,
) -> schemas.AccessCheckResponse:
    """Runs one API access check and records it in the decision log."""
    logger.info(f"Authorization request: user={request.username}, access={request.access}, patient={request.patient_id}")
    result = service.check(request.to_authorization_request())
    reason = REASONS[(result.decision, result.cached)]

    trace_id = None
    if not request.dry_run:
        if result.cached:
            source = "cache"
        elif result.decision is AuthorizationDecision.UNKNOWN:
            source = "none"
        else:
            source = "remote"
        log_entry = {
            "username": request.username,
            "access": request.access,
            "patient_id": request.patient_id,
            "patient_eid": request.patient_eid,
            "decision": result.decision.as_bool(),
            "source": source,
            "explanation": reason,
        }
        trace_id = crud.create_decision_log(db, log_entry).id
    else:
        logger.debug("Dry-run mode: skipping decision log")

    return schemas.AccessCheckResponse(
        decision=result.decision.as_bool(),
        outcome=result.decision,
        cached=result.cached,
        reason=reason,
        trace_id=trace_id,
    )
