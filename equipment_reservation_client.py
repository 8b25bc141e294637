"""Equipment reservation API client.

A thin wrapper around the ``/api/v1`` REST interface served by
``equipment_reservation_api`` for scripts and other services that need to
browse the catalog or manage reservations remotely.  The client uses the
``requests`` library and keeps the bearer token obtained from
:meth:`EquipmentReservationClient.login` for subsequent calls.

Every operation returns a tuple ``(data, error)``.  On success ``error``
is ``None``; on failure ``data`` is empty and ``error`` is a dictionary
with the keys ``status_code``, ``error`` (the server's error class name,
when it sent one) and ``message``::

    client = EquipmentReservationClient(base_url="http://localhost:8000")
    client.login("professor@escola.edu.br", "professor123")
    items, error = client.list_equipment(available=True)
    reservation, error = client.reserve(items[0]["id"], "2025-01-10", "2025-01-12", "Aula de física")
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Union

import requests


logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

Error = Dict[str, Any]
DateLike = Union[str, date]


def _iso(value: DateLike) -> str:
    return value.isoformat() if isinstance(value, date) else value


class EquipmentReservationClient:
    """Client for the equipment reservation API."""

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the client.

        Args:
            base_url: Server root, e.g. ``http://localhost:8000``.
            token: Bearer token to send, e.g. one printed by
                ``create_token.py``.  :meth:`login` replaces it.
            session: Optional requests session; one is created otherwise.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helper
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Send one request below ``/api/v1`` and decode the JSON answer."""
        url = f"{self.base_url}{API_PREFIX}{path}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params or None,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            return None, self._http_error(exc.response)
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "error": None, "message": str(exc)}
        if response.content:
            return response.json(), None
        return None, None

    @staticmethod
    def _http_error(response: Optional[requests.Response]) -> Error:
        status = response.status_code if response is not None else None
        kind = None
        message = ""
        if response is not None:
            try:
                body = response.json()
            except ValueError:
                message = response.text
            else:
                if isinstance(body, dict):
                    kind = body.get("error")
                    detail = body.get("detail")
                    message = detail if isinstance(detail, str) else str(detail or body)
                else:
                    message = str(body)
        logger.error("API request failed (%s): %s", status, message)
        return {"status_code": status, "error": kind, "message": message}

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Tuple[Optional[str], Optional[Error]]:
        """Exchange credentials for a token and keep it for later calls."""
        data, error = self._request("POST", "/users/login", json_body={"email": email, "password": password})
        if error:
            return None, error
        self.token = data["access_token"]
        return self.token, None

    def me(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", "/users/me")

    # ------------------------------------------------------------------
    # Equipment
    # ------------------------------------------------------------------
    def list_equipment(
        self, search: Optional[str] = None, available: Optional[bool] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        params = {"search": search, "available": None if available is None else str(available).lower()}
        data, error = self._request("GET", "/equipment/", params=params)
        if error:
            return [], error
        return data or [], None

    def get_equipment(self, equipment_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", f"/equipment/{equipment_id}")

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------
    def reserve(
        self,
        equipment_id: str,
        start_date: DateLike,
        end_date: DateLike,
        purpose: str,
        user_id: Optional[str] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Reserve equipment, for another user when ``user_id`` is given (admins only)."""
        body: Dict[str, Any] = {
            "equipmentId": equipment_id,
            "startDate": _iso(start_date),
            "endDate": _iso(end_date),
            "purpose": purpose,
        }
        if user_id:
            body["userId"] = user_id
        return self._request("POST", "/reservations/", json_body=body)

    def list_reservations(
        self,
        status: Optional[str] = None,
        equipment_id: Optional[str] = None,
        user_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        params = {"status": status, "equipment_id": equipment_id, "user_id": user_id, "search": search}
        data, error = self._request("GET", "/reservations/", params=params)
        if error:
            return [], error
        return data or [], None

    def set_reservation_status(self, reservation_id: str, status: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("PATCH", f"/reservations/{reservation_id}/status", json_body={"status": status})

    def return_reservation(self, reservation_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self.set_reservation_status(reservation_id, "returned")

    def cancel_reservation(self, reservation_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self.set_reservation_status(reservation_id, "canceled")

    def reactivate_reservation(self, reservation_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self.set_reservation_status(reservation_id, "active")

    def dashboard_summary(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", "/dashboard/summary")
