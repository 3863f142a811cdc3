"""
Client side of the rolling digest protocol.

The Authenticator owns the credential and the rolling chain, produces a
single-use Authorization header for every request and recovers from a
stale chain with a bounded retry/resync sequence:

    attempt 1: next chain value
    attempt 2: next chain value again (tolerates one lost request)
    attempt 3: fresh seed + fresh salt, chain restarted
    then:      terminal failure, session cleared, re-auth signalled

Known tradeoff: a captured header that reaches the server before the
legitimate request advances the server chain. The legitimate client then
desyncs and recovers through the sequence above; this is not prevented.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from ...errors import (
    ApiError,
    AuthorizationDeniedError,
    ChainDesyncError,
    InvalidCredentialError,
    NetworkError,
)
from ..auth.roles import DASHBOARD_ROLE, Role, contains_all, roles_from_payload
from ..digest import (
    DEFAULT_ALGORITHM,
    encode_header,
    generate_salt,
    initial_digest,
    next_digest,
)
from ..session import MemorySessionStore, SessionState, SessionStore

logger = logging.getLogger(__name__)

SEED_PATH = "/api/v1/auth/seed"
KEYINFO_PATH = "/api/v1/auth/keyinfo"

MAX_ATTEMPTS = 3
RESYNC_ATTEMPT = 3

ReauthCallback = Callable[[str], Union[None, Awaitable[None]]]


class Authenticator:
    """
    Rolling digest authenticator.

    All chain mutations go through one asyncio.Lock, whose waiters are
    woken in FIFO order, so requests reach the wire in the order
    authenticated_request() was called.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: Optional[SessionStore] = None,
        required_role: Role = DASHBOARD_ROLE,
        algorithm: str = DEFAULT_ALGORITHM,
        on_reauth_required: Optional[ReauthCallback] = None,
        seed_path: str = SEED_PATH,
        keyinfo_path: str = KEYINFO_PATH,
    ):
        """
        Initialize authenticator.

        Args:
            client: HTTP client, usually created with the API base_url
            store: Persistence mirror of the session state (memory if omitted)
            required_role: Role bits the key must hold to log in
            algorithm: Chain hash algorithm (sha512 or sha256)
            on_reauth_required: Called with the server message when the
                session is terminally rejected; sync or async
            seed_path: Unauthenticated seed endpoint
            keyinfo_path: Key introspection endpoint used by login()
        """
        self.client = client
        self.store: SessionStore = store or MemorySessionStore()
        self.required_role = required_role
        self.algorithm = algorithm
        self.on_reauth_required = on_reauth_required
        self.seed_path = seed_path
        self.keyinfo_path = keyinfo_path

        self._state: Optional[SessionState] = None
        self._lock = asyncio.Lock()
        # Nothing reaches the store until login has checked the key's roles
        self._verifying = False
        # Strong references to shielded request tasks
        self._inflight: set = set()

    @property
    def is_authenticated(self) -> bool:
        return self._state is not None

    @property
    def key_id(self) -> Optional[str]:
        return self._state.key_id if self._state else None

    @property
    def session(self) -> Optional[SessionState]:
        """Snapshot of the current state."""
        return SessionState.from_dict(self._state.to_dict()) if self._state else None

    async def restore(self) -> bool:
        """
        Load state from the session store so the chain resumes.

        Returns:
            True if a credential was restored
        """
        async with self._lock:
            self._state = await self.store.load()
            if self._state:
                logger.info(f"Restored session for key {self._state.key_id}")
            return self._state is not None

    async def login(self, key_id: str, key_secret: str) -> Any:
        """
        Log in with a credential and start a new chain.

        Args:
            key_id: Public key identifier
            key_secret: Secret key material

        Returns:
            The keyinfo payload

        Raises:
            InvalidCredentialError: Empty key id or secret (no network I/O)
            AuthorizationDeniedError: Credential rejected or missing the required role
            NetworkError: Transport failure
            ApiError: Server returned a non-auth error
        """
        if not key_id or not key_secret:
            raise InvalidCredentialError("key id and key secret are required")

        async with self._lock:
            self._state = SessionState(key_id=key_id, key_secret=key_secret, algorithm=self.algorithm)
            self._verifying = True
            verified = False
            try:
                await self._init_chain()
                info = await self._request_locked(self.keyinfo_path, "GET", None, signal_reauth=False)

                roles = roles_from_payload(info.get("roles") if isinstance(info, dict) else None)
                if not contains_all(roles, self.required_role):
                    logger.warning(f"Key {key_id} lacks required role {int(self.required_role)}")
                    raise AuthorizationDeniedError(
                        "this key does not have the role required for dashboard access"
                    )
                verified = True
            finally:
                self._verifying = False
                # Any other exit, cancellation included, drops the unverified credential
                if not verified:
                    await self._clear()

            await self._persist()
            logger.info(f"Logged in with key {key_id}")
            return info

    async def logout(self) -> None:
        async with self._lock:
            await self._clear()

    async def build_header(self) -> str:
        """
        Advance the chain and return the Authorization header for it.

        Initializes the chain from a fresh seed first if needed, reusing
        the stored credential.
        """
        async with self._lock:
            return await self._build_header()

    async def authenticated_request(
        self, path: str, method: str = "GET", body: Any = None
    ) -> Any:
        """
        Send an authenticated request.

        Cancelling the caller does not cancel the queued work: its chain
        advance still happens and the result is discarded.

        Args:
            path: Request path, relative to the client's base_url
            method: HTTP method
            body: JSON body, if any

        Returns:
            Parsed JSON response (None for an empty body)

        Raises:
            AuthorizationDeniedError: Three consecutive 401s
            ApiError: Non-auth application error
            NetworkError: Transport failure
            InvalidCredentialError: No credential held
        """
        task = asyncio.ensure_future(self._serialized_request(path, method, body))
        self._inflight.add(task)
        task.add_done_callback(self._discard_task)
        return await asyncio.shield(task)

    def _discard_task(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Request task finished with {type(task.exception()).__name__}")

    async def _serialized_request(self, path: str, method: str, body: Any) -> Any:
        async with self._lock:
            return await self._request_locked(path, method, body, signal_reauth=True)

    async def _request_locked(
        self, path: str, method: str, body: Any, signal_reauth: bool
    ) -> Any:
        """Bounded retry/resync state machine. Caller holds the lock."""
        message = "unauthorized"

        for attempt in range(1, MAX_ATTEMPTS + 1):
            if attempt == RESYNC_ATTEMPT:
                logger.info(f"Resyncing chain for key {self._require_state().key_id}")
                await self._init_chain()

            try:
                return await self._attempt(path, method, body)
            except ChainDesyncError as e:
                message = e.message or message
                logger.debug(f"{method} {path} rejected on attempt {attempt}: {message}")

        await self._clear()
        logger.warning(f"{method} {path} rejected after {MAX_ATTEMPTS} attempts: {message}")
        if signal_reauth:
            await self._signal_reauth(message)
        raise AuthorizationDeniedError(message)

    async def _attempt(self, path: str, method: str, body: Any) -> Any:
        header = await self._build_header()
        response = await self._send(
            method,
            path,
            headers={"Authorization": header, "Content-Type": "application/json"},
            body=body,
        )

        if response.status_code == 401:
            raise ChainDesyncError(self._error_message(response))

        data = self._parse(response)
        if response.status_code >= 400 or (isinstance(data, dict) and data.get("error")):
            raise ApiError(self._error_message(response, data), response.status_code)
        return data

    async def _build_header(self) -> str:
        state = self._require_state()
        if not state.server_seed or not state.rolling_digest:
            await self._init_chain()

        digest = next_digest(
            bytes.fromhex(state.rolling_digest), state.key_secret, state.salt, state.algorithm
        )
        state.rolling_digest = digest.hex()
        await self._persist()
        return encode_header(state.algorithm, state.key_id, state.salt, digest)

    async def _init_chain(self) -> None:
        """Fetch a fresh seed, pick a fresh salt and compute digest[0]."""
        state = self._require_state()
        seed = await self._fetch_seed()

        state.salt = generate_salt()
        state.server_seed = seed
        state.rolling_digest = initial_digest(
            seed, state.key_secret, state.salt, state.algorithm
        ).hex()
        await self._persist()

    async def _fetch_seed(self) -> str:
        response = await self._send("GET", self.seed_path)
        data = self._parse(response)
        if response.status_code >= 400 or not isinstance(data, dict) or not data.get("seed"):
            raise ApiError(
                self._error_message(response, data) or "server did not return a seed",
                response.status_code,
            )
        return str(data["seed"])

    async def _send(
        self, method: str, path: str, headers: Optional[dict] = None, body: Any = None
    ) -> httpx.Response:
        try:
            return await self.client.request(method, path, headers=headers, json=body)
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @classmethod
    def _error_message(cls, response: httpx.Response, data: Any = None) -> str:
        if data is None:
            data = cls._parse(response)
        if isinstance(data, dict):
            for field in ("error", "detail", "message"):
                if data.get(field):
                    return str(data[field])
        if isinstance(data, str) and data:
            return data
        return response.reason_phrase or f"HTTP {response.status_code}"

    async def _signal_reauth(self, message: str) -> None:
        if not self.on_reauth_required:
            return
        try:
            result = self.on_reauth_required(message)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Re-authentication callback failed")

    def _require_state(self) -> SessionState:
        if self._state is None:
            raise InvalidCredentialError("not logged in")
        return self._state

    async def _persist(self) -> None:
        if self._state is not None and not self._verifying:
            await self.store.save(self._state)

    async def _clear(self) -> None:
        self._state = None
        await self.store.clear()
