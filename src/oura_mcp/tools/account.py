"""Account, device and connection tools."""

import json

from ..config import DEFAULT_OURA_SCOPES
from ..response_builder import ResponseBuilder
from .arguments import NoArguments
from .registry import ToolContext

PROFILE_CACHE_TTL = 3600.0


def normalize_scopes(scope: str | None) -> list[str]:
    """Split a granted scope string, stripping Oura's ``extapi:`` prefix."""
    if not scope:
        return []
    return [s.removeprefix("extapi:") for s in scope.split()]


async def get_oauth_status(ctx: ToolContext, args: NoArguments) -> str:
    """Report the connection state and which required scopes are missing.

    Reads the token store only; never contacts Oura and never exposes tokens.
    """
    status = await ctx.lifecycle.status()
    granted = normalize_scopes(status["scope"])
    missing = [scope for scope in DEFAULT_OURA_SCOPES if scope not in granted]

    result = {
        "connected": status["connected"],
        "expires_at": status["expires_at"],
        "granted_scopes": granted,
        "missing_scopes": missing,
        "has_tag_scope": "tag" in granted,
        "recommendation": (
            "Re-authenticate at /oauth/authorize to grant missing scopes: " + ", ".join(missing)
            if missing
            else "All required scopes are granted"
        ),
    }
    return json.dumps(result, indent=2)


async def get_personal_info(ctx: ToolContext, args: NoArguments) -> str:
    async def fetch() -> str:
        info = await ctx.oura.get_personal_info()
        data = {
            "age": info.age,
            "weight": info.weight,
            "height": info.height,
            "biological_sex": info.biological_sex,
            "email": info.email,
        }
        return ResponseBuilder.build_response(data, query_type="personal_info")

    return await ctx.cached("personal_info", fetch, ttl=PROFILE_CACHE_TTL)


async def get_ring_configuration(ctx: ToolContext, args: NoArguments) -> str:
    async def fetch() -> str:
        rings = await ctx.oura.get_ring_configuration()
        data = [
            {
                "id": ring.id,
                "color": ring.color,
                "design": ring.design,
                "firmware_version": ring.firmware_version,
                "hardware_type": ring.hardware_type,
                "set_up_at": ring.set_up_at,
                "size": ring.size,
            }
            for ring in rings
        ]
        return ResponseBuilder.build_response(
            data, metadata={"count": len(data)}, query_type="ring_configuration"
        )

    return await ctx.cached("ring_configuration", fetch, ttl=PROFILE_CACHE_TTL)
