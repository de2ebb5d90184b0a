"""HTTP client for talking with the expense API."""
import os
from typing import Any, Dict, List, Optional

import requests

API_URL = os.getenv("EXPENSES_API_URL", "http://localhost:8000/api")
API_TIMEOUT = float(os.getenv("EXPENSES_API_TIMEOUT", "10"))


class ApiClientError(Exception):
    """Any failed API call, carrying one message fit for the error banner."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return "An error occurred"
    if not isinstance(payload, dict):
        return "An error occurred"
    message = payload.get("message") or "An error occurred"
    details = [
        f"{error.get('field')}: {error.get('message')}"
        for error in payload.get("errors") or []
        if isinstance(error, dict)
    ]
    if details:
        message = f"{message} ({'; '.join(details)})"
    return message


class ExpenseApiClient:
    """Thin wrapper over the REST API; returns the envelope's ``data``."""

    def __init__(
        self,
        base_url: str = API_URL,
        timeout: float = API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self.session.request(
                method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.Timeout as exc:
            raise ApiClientError("Request timeout. Please try again.") from exc
        except requests.ConnectionError as exc:
            raise ApiClientError("Unable to connect to server. Please check your connection.") from exc
        except requests.RequestException as exc:
            raise ApiClientError(str(exc) or "An unexpected error occurred") from exc

        if not response.ok:
            raise ApiClientError(_error_message(response))
        try:
            return response.json().get("data")
        except (ValueError, AttributeError) as exc:
            raise ApiClientError("An unexpected error occurred") from exc

    def list_expenses(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "/expenses", params=params or {})

    def create_expense(self, expense: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/expenses", json=expense)

    def delete_expense(self, expense_id: str) -> None:
        self._request("DELETE", f"/expenses/{expense_id}")

    def expenses(self) -> List[Dict[str, Any]]:
        return (self.list_expenses() or {}).get("expenses", [])
