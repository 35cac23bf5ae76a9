"""
Marketplace API Client

HTTP client for the marketplace backend.
Attaches the stored session token to authenticated requests.
"""

import json
import logging
from typing import Optional

import httpx

from ..database.storage import LocalStorage
from ..errors import AuthenticationError, MarketplaceAPIError

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "userData"


class MarketplaceClient:
    """
    Client for the marketplace REST backend.

    The session (bearer token and user profile) lives in device-local
    storage, so it survives restarts the same way a browser session does.
    """

    def __init__(
        self,
        base_url: str,
        storage: LocalStorage,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize marketplace client.

        Args:
            base_url: Base URL of the marketplace API
            storage: Local storage holding the session
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to fake the backend)
        """
        self.base_url = base_url.rstrip("/")
        self.storage = storage
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    # ==================== Session ====================

    def get_token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY) or None

    def get_user(self) -> Optional[dict]:
        """Get the stored user profile, dropping it if unreadable"""
        raw = self.storage.get_item(USER_KEY)
        if not raw:
            return None

        try:
            user = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable stored user data")
            self.storage.remove_item(USER_KEY)
            return None

        return user if isinstance(user, dict) else None

    def is_authenticated(self) -> bool:
        return self.get_token() is not None and self.get_user() is not None

    def _store_session(self, token: str, user: Optional[dict]) -> None:
        self.storage.set_item(TOKEN_KEY, token)
        if user is not None:
            self.storage.set_item(USER_KEY, json.dumps(user, ensure_ascii=False))

    def clear_session(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)

    # ==================== Transport ====================

    def _generate_headers(
        self,
        token: Optional[str] = None,
        extra: Optional[dict[str, str]] = None,
    ) -> dict[str, str]:
        """Generate headers including the bearer token if available"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        if token:
            headers["Authorization"] = f"Bearer {token}"

        if extra:
            headers.update(extra)

        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Backend-supplied message, else a generic status message"""
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])

        return f"Error {response.status_code}: {response.reason_phrase}"

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        authenticated: bool = False,
        headers: Optional[dict[str, str]] = None,
    ) -> dict:
        """Make an HTTP request and unwrap the JSON envelope"""
        token = None
        if authenticated:
            token = self.get_token()
            if not token:
                raise AuthenticationError("No authentication token found. Please sign in again.")

        url = f"{self.base_url}{path}"

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                headers=self._generate_headers(token, headers),
                json=body,
            )
        except httpx.HTTPError as e:
            logger.error(f"Request failed: {method} {url} - {e}")
            raise MarketplaceAPIError("Connection error. Check your internet connection.") from e

        if response.status_code == 401 and authenticated:
            logger.warning(f"Session rejected by backend: {method} {path}")
            self.clear_session()
            raise AuthenticationError(self._error_message(response), status_code=401)

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(f"Request failed: {response.status_code} - {message}")
            raise MarketplaceAPIError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise MarketplaceAPIError(
                "Invalid response from server", status_code=response.status_code
            ) from e

        if not isinstance(data, dict):
            logger.error(f"Unexpected response body: {method} {path}")
            raise MarketplaceAPIError("Invalid response from server", status_code=response.status_code)

        if data.get("success") is False:
            raise MarketplaceAPIError(
                data.get("message") or "Request was not successful",
                status_code=response.status_code,
            )

        return data

    # ==================== Auth APIs ====================

    async def _start_session(self, path: str, body: dict) -> dict:
        data = await self._request("POST", path, body=body)
        payload = data.get("data")
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise AuthenticationError(data.get("message") or "No session token returned")

        user = payload.get("user")
        self._store_session(token, user)
        logger.info(f"Session started via {path}")
        return user or {}

    async def login(self, email: str, password: str) -> dict:
        """Sign in and store the session"""
        return await self._start_session("/auth/login", {"email": email, "password": password})

    async def register(self, user_data: dict) -> dict:
        """Create an account and store the session"""
        return await self._start_session("/auth/register", user_data)

    async def logout(self) -> None:
        """Sign out; the local session is cleared even if the backend call fails"""
        try:
            if self.get_token():
                await self._request("POST", "/auth/logout", authenticated=True)
        except MarketplaceAPIError as e:
            logger.warning(f"Backend logout failed, clearing local session anyway: {e}")
        finally:
            self.clear_session()

    async def me(self) -> dict:
        """Fetch the current user and refresh the stored profile"""
        data = await self._request("GET", "/auth/me", authenticated=True)
        payload = data.get("data") or {}
        user = payload.get("user", payload) if isinstance(payload, dict) else {}
        self.storage.set_item(USER_KEY, json.dumps(user, ensure_ascii=False))
        return user

    # ==================== Order APIs ====================

    async def create_order(self, payload: dict, idempotency_key: Optional[str] = None) -> dict:
        """Create an order for the signed-in user"""
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        data = await self._request(
            "POST",
            "/orders",
            body=payload,
            authenticated=True,
            headers=headers,
        )

        order = data.get("data")
        if not isinstance(order, dict):
            raise MarketplaceAPIError("Order response did not include the order")
        return order

    async def get_order(self, order_id: str) -> dict:
        """Get order details"""
        data = await self._request("GET", f"/orders/{order_id}", authenticated=True)
        order = data.get("data")
        if not isinstance(order, dict):
            raise MarketplaceAPIError("Order response did not include the order")
        return order

    async def list_my_orders(self) -> list[dict]:
        """List orders placed by the signed-in user"""
        data = await self._request("GET", "/orders/my-orders", authenticated=True)
        orders = data.get("data") or []
        return orders if isinstance(orders, list) else []
