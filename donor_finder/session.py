"""
Visitor session state for the donor page.

A ``DonorSession`` holds everything one open page needs: the loaded donors,
whether the initial fetch is still running, the current filter selection and
which donors the visitor has asked for help. Derived values (filtered donors,
available count, view state) are recomputed from that state on every call.

``SessionStore`` keeps sessions in memory, keyed by the id stored in the
visitor's cookie.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from cachetools import LRUCache

from .api_client import UsersApiClient
from .domain import (
    ALL_GROUPS,
    Donor,
    ViewState,
    count_available,
    filter_donors,
    is_requested,
    map_users,
    request_help,
)
from .domain.donors import RequestStatus
from .exceptions import SessionNotFoundException
from .logging_config import get_logger
from .metrics import track_donors_loaded, track_help_request, update_active_sessions

logger = get_logger(__name__)


class DonorSession:
    """
    State of one visitor's donor page.

    Attributes:
        session_id: Opaque id carried in the session cookie
        donors: Full donor list, empty until loading finishes
        loading: True while the users fetch is in flight
        selected_group: ``"All"`` or a blood group string
        city_search: City search text exactly as typed
        request_status: Donor ids the visitor requested help from
        load_task: Task running the initial fetch, if started
    """

    def __init__(self, session_id: Optional[str] = None) -> None:
        self.session_id = session_id or uuid4().hex
        self.donors: List[Donor] = []
        self.loading = True
        self.selected_group = ALL_GROUPS
        self.city_search = ""
        self.request_status: RequestStatus = {}
        self.load_task: Optional[asyncio.Task] = None

    async def load(self, client: UsersApiClient) -> None:
        """
        Fetch users and map them to donors.

        Any failure leaves the donor list empty. Loading is always
        finished afterwards; there is no retry.
        """
        try:
            users = await client.fetch_users()
            self.donors = map_users(users)
        except Exception:
            logger.exception(
                "Loading donors failed",
                extra={"extra_fields": {"session_id": self.session_id}},
            )
            self.donors = []
        finally:
            self.loading = False

        track_donors_loaded(len(self.donors))
        logger.info(
            "Donors loaded",
            extra={
                "extra_fields": {
                    "session_id": self.session_id,
                    "donor_count": len(self.donors),
                }
            },
        )

    def start_loading(self, client: UsersApiClient) -> asyncio.Task:
        """Schedule ``load`` on the running event loop."""
        self.load_task = asyncio.create_task(self.load(client))
        return self.load_task

    def cancel_loading(self) -> None:
        if self.load_task is not None and not self.load_task.done():
            self.load_task.cancel()

    def set_filters(
        self,
        selected_group: Optional[str] = None,
        city_search: Optional[str] = None,
    ) -> None:
        """Update the filter selection; ``None`` leaves a value untouched."""
        if selected_group is not None:
            self.selected_group = selected_group
        if city_search is not None:
            self.city_search = city_search

    def filtered_donors(self) -> List[Donor]:
        return filter_donors(self.donors, self.selected_group, self.city_search)

    def available_count(self) -> int:
        """Available donors within the filtered view."""
        return count_available(self.filtered_donors())

    def view_state(self) -> ViewState:
        if self.loading:
            return ViewState.LOADING
        if not self.filtered_donors():
            return ViewState.EMPTY
        return ViewState.READY

    def find_donor(self, donor_id: int) -> Optional[Donor]:
        return next((d for d in self.donors if d.id == donor_id), None)

    def is_requested(self, donor_id: int) -> bool:
        return is_requested(self.request_status, donor_id)

    def request_help(self, donor_id: int) -> bool:
        """
        Register a help request for a donor.

        Returns:
            True if the request status changed, False if the request was
            ignored (unknown donor, unavailable donor or already requested)
        """
        previous = self.request_status
        self.request_status = request_help(self.donors, previous, donor_id)
        changed = self.request_status != previous

        track_help_request(changed)
        logger.debug(
            "Help request handled",
            extra={
                "extra_fields": {
                    "session_id": self.session_id,
                    "donor_id": donor_id,
                    "changed": changed,
                }
            },
        )
        return changed

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the session."""
        filtered = self.filtered_donors()
        return {
            "state": self.view_state().value,
            "selected_group": self.selected_group,
            "city_search": self.city_search,
            "total_count": len(self.donors),
            "available_count": count_available(filtered),
            "donors": [
                {**donor.to_dict(), "requested": self.is_requested(donor.id)}
                for donor in filtered
            ],
            "request_status": {
                str(donor_id): flag for donor_id, flag in self.request_status.items()
            },
        }


class _SessionCache(LRUCache):
    """LRU cache that cancels the pending load of evicted sessions."""

    def popitem(self):
        session_id, session = super().popitem()
        session.cancel_loading()
        logger.debug(
            "Evicted session",
            extra={"extra_fields": {"session_id": session_id}},
        )
        return session_id, session


class SessionStore:
    """
    In-memory registry of visitor sessions.

    Bounded to ``max_sessions``; creating a session beyond the limit evicts
    the least recently used one and cancels its pending load.
    """

    def __init__(self, max_sessions: int = 1000) -> None:
        self.max_sessions = max_sessions
        self._sessions: _SessionCache = _SessionCache(maxsize=max_sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self, client: UsersApiClient) -> DonorSession:
        """Create a session and start fetching its donors."""
        session = DonorSession()
        self._sessions[session.session_id] = session
        session.start_loading(client)
        update_active_sessions(len(self._sessions))

        logger.info(
            "Created session",
            extra={
                "extra_fields": {
                    "session_id": session.session_id,
                    "active_sessions": len(self._sessions),
                }
            },
        )
        return session

    def get(self, session_id: Optional[str]) -> DonorSession:
        """
        Look up a session and mark it as recently used.

        Raises:
            SessionNotFoundException: If the id is unknown or missing
        """
        if not session_id or session_id not in self._sessions:
            raise SessionNotFoundException(session_id or "")
        return self._sessions[session_id]

    def get_or_create(
        self, session_id: Optional[str], client: UsersApiClient
    ) -> Tuple[DonorSession, bool]:
        """
        Return the visitor's session, creating one if needed.

        Returns:
            Tuple of the session and whether it was just created
        """
        try:
            return self.get(session_id), False
        except SessionNotFoundException:
            return self.create(client), True

    async def close(self) -> None:
        """Cancel pending loads and drop all sessions."""
        tasks = [
            s.load_task
            for s in self._sessions.values()
            if s.load_task is not None and not s.load_task.done()
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._sessions.clear()
        update_active_sessions(0)
