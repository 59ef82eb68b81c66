"""Process-wide application context.

Every piece of shared mutable state (token record, authorization attempts,
session table, response cache) hangs off one ``AppContext`` built at startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .cache import TTLCache
from .config import OuraAppConfig
from .lifecycle import TokenLifecycleManager
from .oauth_routes import OAuthEndpoints
from .oauth_service import OuraOAuthService
from .pkce import PKCEAuthorizationFlow
from .sessions import SessionManager
from .token_store import TokenStore
from .tools import ToolExecutor, build_tool_specs
from .transport import TransportDispatcher

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: OuraAppConfig
    store: TokenStore
    oauth_service: OuraOAuthService
    lifecycle: TokenLifecycleManager
    flow: PKCEAuthorizationFlow
    sessions: SessionManager
    executor: ToolExecutor
    dispatcher: TransportDispatcher
    oauth: OAuthEndpoints

    async def init(self) -> None:
        """Load the persisted token and start background housekeeping."""
        record = await self.store.load()
        if record is None:
            logger.info("No Oura token stored; authorize at /oauth/authorize")
        else:
            logger.info("Loaded Oura token (expires_at=%s)", record.expires_at.isoformat())
        self.flow.start()

    async def teardown(self) -> None:
        await self.sessions.teardown()
        await self.flow.stop()
        self.executor.cache.clear()


def create_context(config: OuraAppConfig) -> AppContext:
    """Wire the components for one server process."""
    store = TokenStore(config.token_file_path, config.encryption_key)
    oauth_service = OuraOAuthService.from_config(config)
    lifecycle = TokenLifecycleManager(store, oauth_service)
    flow = PKCEAuthorizationFlow(oauth_service, lifecycle)
    sessions = SessionManager(
        heartbeat_interval=config.session_heartbeat_seconds,
        idle_timeout=config.session_idle_timeout_seconds,
    )
    executor = ToolExecutor(build_tool_specs(), lifecycle, TTLCache())
    dispatcher = TransportDispatcher(sessions, executor, config.mcp_bearer_token)
    return AppContext(
        config=config,
        store=store,
        oauth_service=oauth_service,
        lifecycle=lifecycle,
        flow=flow,
        sessions=sessions,
        executor=executor,
        dispatcher=dispatcher,
        oauth=OAuthEndpoints(flow, lifecycle, dispatcher.authenticate),
    )
