"""HTTP clients for the restaurant backend."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, TypeVar

import requests

from storefront.config import API_TIMEOUT_SECONDS, API_URL
from storefront.models import (
    BlogPost,
    Category,
    OrderReceipt,
    OrderRequest,
    Product,
    Promotion,
    ReservationRequest,
    Table,
    TableInfo,
    WaiterUser,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class ApiError(Exception):
    """A failed backend call. ``message`` is safe to show to the user."""

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class NotFoundError(ApiError):
    """The requested resource (slug, QR code, table) does not exist."""


class UnauthorizedError(ApiError):
    """The staff token is missing, expired or rejected."""


def _error_message(resp: requests.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return None


class BaseClient:
    def __init__(
        self,
        base_url: str = API_URL,
        session: requests.Session | None = None,
        timeout: float = API_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._url(path)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Network error calling %s %s: %s", method, url, exc)
            raise ApiError("Network error. Please try again.") from exc

        if resp.status_code >= 400:
            message = _error_message(resp) or f"API Error: {resp.reason or resp.status_code}"
            logger.warning("HTTP %s calling %s %s: %s", resp.status_code, method, url, message)
            if resp.status_code == 401:
                raise UnauthorizedError(message, resp.status_code)
            if resp.status_code == 404:
                raise NotFoundError(message, resp.status_code)
            raise ApiError(message, resp.status_code)

        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError("Unexpected response from server", resp.status_code) from exc

    def _parse(self, build: Callable[[], T]) -> T:
        try:
            return build()
        except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
            logger.warning("Unreadable response body: %r", exc)
            raise ApiError("Unexpected response from server") from exc

    def _get(self, path: str, **kwargs: Any) -> Any:
        return self._request("GET", path, **kwargs)

    def _post(self, path: str, data: Any, **kwargs: Any) -> Any:
        return self._request("POST", path, json=data, **kwargs)


class ApiClient(BaseClient):
    """Public storefront endpoints: menu, content, orders, reservations, QR ordering."""

    def get_products(self) -> list[Product]:
        rows = self._get("/products")
        return self._parse(lambda: [Product.from_api(row) for row in rows])

    def get_categories(self) -> list[Category]:
        rows = self._get("/categories")
        return self._parse(
            lambda: [
                Category(
                    id=int(row["id"]),
                    name=str(row.get("name", "")),
                    slug=str(row.get("slug") or ""),
                    description=row.get("description"),
                )
                for row in rows
            ]
        )

    def get_blogs(self) -> list[BlogPost]:
        rows = self._get("/blogs")
        return self._parse(lambda: [BlogPost.from_api(row) for row in rows])

    def get_blog(self, slug: str) -> BlogPost:
        data = self._get(f"/blogs/{slug}")
        return self._parse(lambda: BlogPost.from_api(data))

    def get_promotions(self) -> list[Promotion]:
        rows = self._get("/promotions")
        return self._parse(lambda: [Promotion.from_api(row) for row in rows])

    def create_order(self, order: OrderRequest) -> OrderReceipt:
        data = self._post("/orders", order.to_payload())
        return self._parse(lambda: OrderReceipt.from_api(data))

    def get_availability(self, date: str, party_size: int) -> list[dict[str, Any]]:
        """Raw slot rows for a date and party size; tiering happens in the wizard."""
        data = self._get("/reservations/availability", params={"date": date, "party_size": party_size})
        if not isinstance(data, dict):
            return []
        slots = data.get("available_slots")
        return list(slots) if isinstance(slots, list) else []

    def get_available_tables(self, date: str, time: str, party_size: int) -> list[Table]:
        data = self._get(
            "/reservations/available-tables",
            params={"date": date, "time": time, "party_size": party_size},
        )
        if not isinstance(data, list):
            return []
        return self._parse(lambda: [Table.from_api(row) for row in data])

    def create_reservation(self, reservation: ReservationRequest) -> dict[str, Any]:
        return self._post("/reservations", reservation.to_payload())

    def get_qr_table(self, qr_code: str) -> TableInfo:
        data = self._get(f"/qr/table/{qr_code}")
        return self._parse(lambda: TableInfo.from_api(data["table"]))

    def create_qr_order(self, table_id: int, items: Iterable[dict[str, Any]]) -> dict[str, Any]:
        return self._post("/qr/orders", {"table_id": table_id, "items": list(items)})

    def call_waiter(self, table_id: int) -> dict[str, Any]:
        return self._post("/qr/call-waiter", {"table_id": table_id})

    def request_bill(self, table_id: int) -> dict[str, Any]:
        return self._post("/qr/request-bill", {"table_id": table_id})


class WaiterClient(BaseClient):
    """Staff endpoints under ``/api/waiter``, authenticated with a bearer token."""

    def login(self, email: str, password: str) -> tuple[str, WaiterUser]:
        data = self._post("/login", {"email": email, "password": password})
        return self._parse(lambda: (str(data["token"]), WaiterUser.from_api(data["user"])))

    def _auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def get_tables(self, token: str) -> list[TableInfo]:
        rows = self._get("/waiter/tables", headers=self._auth(token))
        return self._parse(lambda: [TableInfo.from_api(row) for row in rows])

    def create_table_order(self, token: str, table_id: int, items: Iterable[dict[str, Any]]) -> dict[str, Any]:
        return self._post(
            "/waiter/orders",
            {"table_id": table_id, "items": list(items)},
            headers=self._auth(token),
        )
