"""
Client for the party PHP API.

Every endpoint answers with the same envelope:

    {"status": "success" | "error", "data": [...], "message": "..."}

`parse_envelope` validates that into ApiSuccess / ApiFailure (see schemas.py) so
nothing downstream has to poke at raw dicts. Transport problems (timeouts,
HTTP errors, non-JSON bodies) are retried once after a short delay; API-level
errors are not.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests
from pydantic import ValidationError

from datacenter.hierarchy import LevelSpec
from datacenter.models import Entity, ParentIds
from datacenter.schemas import ENVELOPE, ROWS, ApiEnvelope, ApiFailure, ApiSuccess

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 12.0
DEFAULT_RETRY_DELAY = 0.35


# ---------------- Errors ----------------
class DataCenterError(Exception):
    """Base for every failure of an external call."""


class TransportError(DataCenterError):
    """The request did not complete: offline, timeout, HTTP error, garbage body."""


class ApiError(DataCenterError):
    """The API answered with status "error"; message is shown verbatim."""


class RequestCancelled(DataCenterError):
    """A newer request superseded this one."""


# ---------------- Envelope ----------------
def parse_envelope(payload: Any) -> ApiEnvelope:
    # some endpoints (polling stations) return a bare list
    if isinstance(payload, list):
        return ApiSuccess(data=payload)
    try:
        return ENVELOPE.validate_python(payload)
    except ValidationError:
        return ApiFailure(message="Unexpected response format")


def unwrap(envelope: ApiEnvelope) -> ApiSuccess:
    if isinstance(envelope, ApiFailure):
        raise ApiError(envelope.message)
    return envelope


# ---------------- Retrying fetch ----------------
def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise RequestCancelled("request cancelled")


def fetch_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    data: Optional[Mapping[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: int = 1,
    delay: float = DEFAULT_RETRY_DELAY,
    cancel: Optional[threading.Event] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Issue one HTTP call and decode its JSON body.

    Only TransportError is retried (max_retries extra attempts, fixed delay).
    `cancel` is checked before every attempt and before returning, so a
    superseded load never hands back its result.
    """
    attempts = max(0, int(max_retries)) + 1
    last_exc: Optional[TransportError] = None
    for attempt in range(1, attempts + 1):
        _check_cancel(cancel)
        try:
            resp = session.request(method, url, params=params, data=data, timeout=timeout)
            if resp.status_code >= 400:
                raise TransportError(_http_error_message(resp))
            try:
                body = resp.json()
            except ValueError:
                logger.error("Non-JSON response from %s => %.200s", url, resp.text)
                raise TransportError("Server returned an invalid response") from None
            _check_cancel(cancel)
            return body
        except requests.Timeout:
            last_exc = TransportError("Request timed out")
        except requests.RequestException as e:
            last_exc = TransportError(f"Network error: {e}")
        except TransportError as e:
            last_exc = e
        if attempt < attempts:
            logger.warning(
                "[retry] %s %s failed (attempt %d/%d): %s. Retrying in %.2fs",
                method, url, attempt, attempts, last_exc, delay,
            )
            sleep(delay)
    if last_exc is None:
        raise TransportError(f"No attempt made for {method} {url}")
    raise last_exc


def _http_error_message(resp: requests.Response) -> str:
    # the PHP side often puts a useful message into error bodies
    try:
        msg = (resp.json() or {}).get("message")
    except (ValueError, AttributeError):
        msg = None
    return str(msg) if msg else f"HTTP {resp.status_code}"


# ---------------- Client ----------------
class ApiClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 1,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None,
            cancel: Optional[threading.Event] = None) -> ApiEnvelope:
        payload = fetch_json(
            self.session, "GET", self.url(endpoint),
            params=params, timeout=self.timeout,
            max_retries=self.max_retries, delay=self.retry_delay,
            cancel=cancel, sleep=self._sleep,
        )
        return parse_envelope(payload)

    def post(self, endpoint: str, data: Mapping[str, Any]) -> ApiEnvelope:
        # mutations are not idempotent: no retry
        payload = fetch_json(
            self.session, "POST", self.url(endpoint),
            data=data, timeout=self.timeout, max_retries=0, sleep=self._sleep,
        )
        return parse_envelope(payload)

    # ---- collections ----
    def list_collection(self, level: LevelSpec, parent_id: Optional[str] = None,
                        cancel: Optional[threading.Event] = None) -> List[Entity]:
        params = {level.parent_param: parent_id} if level.parent_param and parent_id else None
        env = unwrap(self.get(level.list_endpoint, params=params, cancel=cancel))
        try:
            rows = ROWS.validate_python(env.data)
        except ValidationError:
            raise ApiError(f"Bad {level.plural.lower()} format") from None
        return level.normalize_many(rows or [], parent_id)

    # ---- mutations ----
    def create(self, level: LevelSpec, values: Mapping[str, Any], parent_ids: ParentIds) -> ApiSuccess:
        body = _form_body(values, parent_ids)
        logger.info("create %s under %s", level.key, parent_ids or "root")
        return unwrap(self.post(level.endpoint("add"), body))

    def update(self, level: LevelSpec, entity_id: str, values: Mapping[str, Any],
               parent_ids: ParentIds) -> ApiSuccess:
        body = _form_body(values, parent_ids)
        body["id"] = entity_id
        logger.info("update %s %s", level.key, entity_id)
        return unwrap(self.post(level.endpoint("update"), body))

    def delete(self, level: LevelSpec, entity_id: str, parent_ids: ParentIds) -> ApiSuccess:
        body = _form_body({}, parent_ids)
        body["id"] = entity_id
        logger.info("delete %s %s", level.key, entity_id)
        return unwrap(self.post(level.endpoint("delete"), body))


def _form_body(values: Mapping[str, Any], parent_ids: ParentIds) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    for k, v in values.items():
        if v is None:
            continue
        body[k] = v.strip() if isinstance(v, str) else v
    for level_key, pid in parent_ids.items():
        body[f"{level_key}_id"] = pid
    return body
