"""
Pusher Channels REST client
Publishes realtime events (booking and POS updates) to subscribed dashboards
"""

import json
import logging
import time
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx

from .. import config
from ..security_utils import compute_hmac_sha256, md5_hex

logger = logging.getLogger(__name__)

PUBLIC_CHANNEL = "public-realtime"


def is_pusher_configured() -> bool:
    return bool(config.PUSHER_APP_ID and config.PUSHER_KEY and config.PUSHER_SECRET)


def build_query_string(params: dict[str, str]) -> str:
    """Sorted, percent-encoded query string as Pusher signs it"""
    return "&".join(f"{quote(k, safe='')}={quote(str(params[k]), safe='')}" for k in sorted(params))


def sign_request(
    method: str, path: str, body: str, timestamp: Optional[int] = None
) -> tuple[str, str]:
    """
    Build the signed query for a Pusher REST call

    Returns:
        Tuple of (query_string, auth_signature)
    """
    params = {
        "auth_key": config.PUSHER_KEY,
        "auth_timestamp": str(timestamp if timestamp is not None else int(time.time())),
        "auth_version": "1.0",
        "body_md5": md5_hex(body),
    }
    query_string = build_query_string(params)
    string_to_sign = f"{method}\n{path}\n{query_string}"
    return query_string, compute_hmac_sha256(string_to_sign, config.PUSHER_SECRET)


def with_private(*channels: str) -> list[str]:
    """Each channel followed by its private- variant"""
    result = []
    for channel in channels:
        result.extend([channel, f"private-{channel}"])
    return result


async def trigger_event(
    channels: Union[str, list[str]], event_name: str, data: Any
) -> dict:
    """
    Publish one event to one or more channels

    Never raises. Returns {"success": True, "response": ...} or
    {"success": False, "error": ...}.
    """
    if not is_pusher_configured():
        logger.debug(f"📡 Pusher not configured, skipping {event_name}")
        return {"success": False, "error": "Pusher not configured"}

    channel_list = [channels] if isinstance(channels, str) else list(channels)
    payload = data if isinstance(data, str) else json.dumps(data, default=str)
    body = json.dumps({"name": event_name, "channels": channel_list, "data": payload})

    path = f"/apps/{config.PUSHER_APP_ID}/events"
    query_string, signature = sign_request("POST", path, body)
    url = f"https://api-{config.PUSHER_CLUSTER}.pusher.com{path}?{query_string}&auth_signature={signature}"

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                url, content=body, headers={"Content-Type": "application/json"}
            )

        if response.status_code >= 400:
            logger.warning(f"⚠️ Pusher responded {response.status_code} for {event_name}: {response.text}")
            return {
                "success": False,
                "error": f"Pusher API responded with {response.status_code}: {response.text}",
            }

        logger.info(f"📡 Pusher event {event_name} sent to {len(channel_list)} channel(s)")
        try:
            return {"success": True, "response": response.json()}
        except ValueError:
            return {"success": True, "response": {}}
    except Exception as e:
        logger.warning(f"⚠️ Failed to emit Pusher event {event_name}: {e}")
        return {"success": False, "error": str(e)}
