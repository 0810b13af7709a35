"""HTTP client for the finance API.

The transaction list is cached after the first read and dropped after any
successful write, so the server remains the only authoritative copy.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import httpx

from errors import ERROR_KINDS, FinanceError

logger = logging.getLogger(__name__)


class FinanceClient:
    def __init__(self, http: httpx.Client, token: Optional[str] = None) -> None:
        self.http = http
        self.token = token
        self._transactions: Optional[list[dict[str, Any]]] = None

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = self.http.request(method, path, headers=self._headers(), **kwargs)
        if response.is_success:
            return response.json()
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}
        kind = body.get("kind", "error")
        message = body.get("message") or response.text
        error_cls = ERROR_KINDS.get(kind, FinanceError)
        raise error_cls(message)

    def invalidate(self) -> None:
        self._transactions = None

    def signup(self, name: str, email: str, password: str) -> dict[str, Any]:
        return self._request(
            "POST", "/api/signup", json={"name": name, "email": email, "password": password}
        )

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/api/login", json={"email": email, "password": password}
        )
        self.token = data["token"]
        self.invalidate()
        return data["user"]

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/api/me")

    def categories(self) -> list[dict[str, str]]:
        return self._request("GET", "/api/categories")["categories"]

    def transactions(self, *, refresh: bool = False) -> list[dict[str, Any]]:
        if refresh or self._transactions is None:
            self._transactions = self._request("GET", "/api/transactions")[
                "transactions"
            ]
        return list(self._transactions)

    def add_transaction(
        self,
        description: str,
        amount: Any,
        type: str,
        date: str,
        category: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "description": description,
            "amount": str(amount),
            "type": type,
            "date": date,
        }
        if category is not None:
            payload["category"] = category
        data = self._request("POST", "/api/transactions", json=payload)
        self.invalidate()
        return data["transaction"]

    def update_transaction(self, transaction_id: int, **fields: Any) -> dict[str, Any]:
        if "amount" in fields and fields["amount"] is not None:
            fields["amount"] = str(fields["amount"])
        data = self._request("PUT", f"/api/transactions/{transaction_id}", json=fields)
        self.invalidate()
        return data["transaction"]

    def delete_transaction(self, transaction_id: int) -> None:
        self._request("DELETE", f"/api/transactions/{transaction_id}")
        self.invalidate()

    def summary(self) -> dict[str, Any]:
        return self._request("GET", "/api/summary")

    def goal(self, goal: Any) -> dict[str, Any]:
        return self._request("GET", "/api/goal", params={"goal": str(goal)})

    def send_report(self, pdf_bytes: bytes) -> dict[str, Any]:
        encoded = base64.b64encode(pdf_bytes).decode("ascii")
        data = self._request("POST", "/api/send-report", json={"pdf_data": encoded})
        logger.info("report_submitted")
        return data
