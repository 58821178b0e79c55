"""WHOOP developer API client.

Provides:
- Bearer-authenticated requests with a valid token on every call
- Single-page and exhaustive cursor pagination for collections
- Lookups by id and by cycle id
- Combined multi-resource fetch for one tracker day, run concurrently

Usage:
    client = get_client()
    page = client.fetch_page(ResourceKind.SLEEP, QueryFilters(limit=10))
    everything = client.fetch_all(ResourceKind.CYCLE, QueryFilters(start=..., end=...))
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Optional

import requests

from .config import Config
from .core import day_range, now_iso, span_range
from .errors import AuthRequired, RateLimited, RemoteRequestFailed, ValidationError
from .models import (
    ActivityMapping,
    Body,
    CombinedOutput,
    Cycle,
    Page,
    Profile,
    Recovery,
    Sleep,
    Workout,
)

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    PROFILE = "profile"
    BODY = "body"
    SLEEP = "sleep"
    RECOVERY = "recovery"
    WORKOUT = "workout"
    CYCLE = "cycle"

    @property
    def is_collection(self) -> bool:
        return self in COLLECTION_ENDPOINTS


ALL_KINDS = list(ResourceKind)

COLLECTION_ENDPOINTS = {
    ResourceKind.SLEEP: "/v2/activity/sleep",
    ResourceKind.RECOVERY: "/v2/recovery",
    ResourceKind.WORKOUT: "/v2/activity/workout",
    ResourceKind.CYCLE: "/v2/cycle",
}

RECORD_MODELS = {
    ResourceKind.SLEEP: Sleep,
    ResourceKind.RECOVERY: Recovery,
    ResourceKind.WORKOUT: Workout,
    ResourceKind.CYCLE: Cycle,
}

PROFILE_ENDPOINT = "/v2/user/profile/basic"
BODY_ENDPOINT = "/v2/user/measurement/body"
USER_ACCESS_ENDPOINT = "/v2/user/access"


@dataclass
class QueryFilters:
    """Collection query shape. A cursor is only valid for the filters that produced it."""

    start: Optional[str] = None
    end: Optional[str] = None
    limit: Optional[int] = None

    def to_params(self, cursor: Optional[str] = None) -> dict:
        params = {}
        if self.start:
            params["start"] = self.start
        if self.end:
            params["end"] = self.end
        if self.limit:
            params["limit"] = self.limit
        if cursor:
            params["nextToken"] = cursor
        return params


class WhoopClient:
    """Authenticated access to WHOOP resources."""

    def __init__(self, tokens, config: Optional[Config] = None, session: Optional[requests.Session] = None):
        """Initialize client.

        Args:
            tokens: TokenManager supplying a valid credential per request.
            config: Config instance. If None, uses defaults.
            session: HTTP session. If None, a new one is created.
        """
        self.tokens = tokens
        self.config = config or Config()
        self.session = session or requests.Session()

    # =========================================================================
    # Transport
    # =========================================================================

    def _send(self, method: str, endpoint: str, params: Optional[dict] = None) -> requests.Response:
        credential = self.tokens.get_valid_credential()
        url = self.config.api.base_url + endpoint

        logger.debug("%s %s %s", method, endpoint, params or "")
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {credential.access_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.config.api.timeout_seconds,
            )
        except requests.RequestException as e:
            raise RemoteRequestFailed(f"Request to {endpoint} failed: {e}")

        if response.status_code == 401:
            raise AuthRequired("Authentication failed. Run: whoop auth login", status=401)
        if response.status_code == 429:
            raise RateLimited("Rate limit exceeded", status=429)
        if not response.ok:
            raise RemoteRequestFailed("API request failed", status=response.status_code)
        return response

    def _get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        return self._send("GET", endpoint, params).json()

    # =========================================================================
    # Pagination
    # =========================================================================

    def _validate_limit(self, filters: QueryFilters) -> None:
        if filters.limit is None:
            return
        max_size = self.config.api.max_page_size
        if isinstance(filters.limit, bool) or not isinstance(filters.limit, int) or not 1 <= filters.limit <= max_size:
            raise ValidationError(f"Limit must be an integer between 1 and {max_size}")

    def fetch_page(
        self,
        kind: ResourceKind,
        filters: Optional[QueryFilters] = None,
        cursor: Optional[str] = None,
    ) -> Page:
        """One page of a collection.

        Raises:
            ValidationError: kind is not a collection or limit is out of range.
        """
        kind = ResourceKind(kind)
        if not kind.is_collection:
            raise ValidationError(f"{kind.value} is not a paginated collection")
        filters = filters or QueryFilters()
        self._validate_limit(filters)

        body = self._get(COLLECTION_ENDPOINTS[kind], filters.to_params(cursor))
        model = RECORD_MODELS[kind]
        return Page(
            records=[model.from_api(r) for r in body.get("records") or []],
            next_token=body.get("next_token") or None,
        )

    def fetch_all(self, kind: ResourceKind, filters: Optional[QueryFilters] = None) -> list:
        """Every record matching filters, following cursors until none is returned."""
        filters = filters or QueryFilters()
        records = []
        cursor = None
        pages = 0

        while True:
            page = self.fetch_page(kind, filters, cursor)
            pages += 1
            records.extend(page.records)
            cursor = page.next_token
            if not cursor:
                break

        logger.debug("Fetched %d %s records in %d pages", len(records), ResourceKind(kind).value, pages)
        return records

    # =========================================================================
    # Single Resources
    # =========================================================================

    def get_profile(self) -> Profile:
        return Profile.from_api(self._get(PROFILE_ENDPOINT))

    def get_body(self) -> Body:
        return Body.from_api(self._get(BODY_ENDPOINT))

    def get_sleep_by_id(self, sleep_id: str) -> Sleep:
        return Sleep.from_api(self._get(f"/v2/activity/sleep/{sleep_id}"))

    def get_workout_by_id(self, workout_id: str) -> Workout:
        return Workout.from_api(self._get(f"/v2/activity/workout/{workout_id}"))

    def get_cycle_by_id(self, cycle_id: int) -> Cycle:
        return Cycle.from_api(self._get(f"/v2/cycle/{cycle_id}"))

    def get_sleep_for_cycle(self, cycle_id: int) -> Sleep:
        return Sleep.from_api(self._get(f"/v2/cycle/{cycle_id}/sleep"))

    def get_recovery_for_cycle(self, cycle_id: int) -> Recovery:
        return Recovery.from_api(self._get(f"/v2/cycle/{cycle_id}/recovery"))

    def get_activity_mapping(self, activity_v1_id: int) -> ActivityMapping:
        """Look up the v2 UUID of a v1 activity id."""
        return ActivityMapping.from_api(self._get(f"/v1/activity-mapping/{activity_v1_id}"))

    def revoke_access(self) -> dict:
        """Revoke this app's access for the user and clear the stored credential."""
        self._send("DELETE", USER_ACCESS_ENDPOINT)
        self.tokens.logout()
        return {"revoked": True}

    # =========================================================================
    # Combined Fetch
    # =========================================================================

    def _fetch_kind(
        self,
        kind: ResourceKind,
        filters: QueryFilters,
        fetch_all: bool,
        cursor: Optional[str],
    ) -> tuple:
        """Returns (value, next_token) for one resource kind."""
        if kind is ResourceKind.PROFILE:
            return self.get_profile(), None
        if kind is ResourceKind.BODY:
            return self.get_body(), None
        if fetch_all:
            return self.fetch_all(kind, filters), None
        page = self.fetch_page(kind, filters, cursor)
        return page.records, page.next_token

    def fetch_data(
        self,
        kinds: Iterable[ResourceKind],
        day: date,
        limit: Optional[int] = None,
        fetch_all: bool = False,
        start: Optional[str] = None,
        end: Optional[str] = None,
        cursor: Optional[str] = None,
    ) -> CombinedOutput:
        """Fetch several resource kinds for one tracker day.

        Kinds are independent reads and run in parallel threads; results are
        joined before returning. Without explicit start/end the query covers
        the tracker day of `day`.

        Raises:
            ValidationError: bad limit, or a cursor combined with anything
                other than exactly one collection kind.
        """
        kinds = list(dict.fromkeys(ResourceKind(k) for k in kinds)) or list(ALL_KINDS)

        if cursor:
            if len(kinds) != 1 or not kinds[0].is_collection:
                raise ValidationError(
                    "--next-token can only be used with exactly one collection type: "
                    "sleep, recovery, workout, or cycle"
                )
            if fetch_all:
                raise ValidationError("--next-token cannot be combined with --all")

        if not start and not end:
            start, end = day_range(day, self.config.day.cutoff_hour)
        if limit is None:
            limit = self.config.api.default_page_size
        filters = QueryFilters(start=start, end=end, limit=limit)
        self._validate_limit(filters)

        with ThreadPoolExecutor(max_workers=len(kinds)) as pool:
            futures = {
                kind: pool.submit(self._fetch_kind, kind, filters, fetch_all, cursor)
                for kind in kinds
            }
            results = {kind: future.result() for kind, future in futures.items()}

        output = CombinedOutput(date=day.isoformat(), fetched_at=now_iso())
        pagination = {}
        for kind, (value, next_token) in results.items():
            setattr(output, kind.value, value)
            if next_token:
                pagination[kind.value] = next_token

        if pagination:
            output.pagination = pagination
        return output

    def fetch_history(self, kinds: Iterable[ResourceKind], first_day: date, last_day: date) -> dict:
        """Every record of each collection kind over tracker days first_day..last_day.

        Returns:
            Mapping of ResourceKind to its full record list.
        """
        kinds = [ResourceKind(k) for k in kinds]
        for kind in kinds:
            if not kind.is_collection:
                raise ValidationError(f"{kind.value} has no history")

        start, end = span_range(first_day, last_day, self.config.day.cutoff_hour)
        filters = QueryFilters(start=start, end=end, limit=self.config.api.max_page_size)

        with ThreadPoolExecutor(max_workers=len(kinds) or 1) as pool:
            futures = {kind: pool.submit(self.fetch_all, kind, filters) for kind in kinds}
            return {kind: future.result() for kind, future in futures.items()}
