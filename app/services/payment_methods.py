"""
Xendit payment method listing with caching and a built-in fallback list
"""

import logging
from typing import Optional

import httpx

from .. import config
from ..cache import PAYMENT_METHODS_CACHE_KEY, cache

logger = logging.getLogger(__name__)

FALLBACK_PAYMENT_METHODS = [
    {"id": "card", "label": "Credit / Debit Card"},
    {"id": "gcash", "label": "GCash (e-wallet)"},
    {"id": "paymaya", "label": "PayMaya (e-wallet)"},
    {"id": "bank_transfer", "label": "Bank Transfer"},
    {"id": "pay_at_counter", "label": "Pay at Counter (Cash)"},
]

XENDIT_TIMEOUT_SECONDS = 5.0


def is_xendit_configured() -> bool:
    key = config.XENDIT_SECRET_KEY
    return bool(key) and "YOUR_SECRET_KEY" not in key


def normalize_methods(data) -> list[dict]:
    """Map Xendit's response shapes onto [{"id", "label"}]"""
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = data.get("available_payment_methods") or data.get("payment_methods") or []
    else:
        items = []

    methods = []
    for item in items:
        if not isinstance(item, dict):
            continue
        raw_id = (
            item.get("code")
            or item.get("id")
            or item.get("payment_method")
            or item.get("type")
            or item.get("name")
            or ""
        )
        method_id = str(raw_id).lower()
        if not method_id:
            continue
        label = (
            item.get("name")
            or item.get("display_name")
            or item.get("label")
            or item.get("payment_method")
            or item.get("id")
            or method_id
        )
        methods.append({"id": method_id, "label": label})
    return methods


async def fetch_xendit_methods() -> Optional[list[dict]]:
    """Ask Xendit for the account's methods; None on any failure"""
    url = f"{config.XENDIT_API_URL}/invoices/available_payment_methods"
    try:
        async with httpx.AsyncClient(timeout=XENDIT_TIMEOUT_SECONDS) as client:
            response = await client.get(
                url,
                auth=(config.XENDIT_SECRET_KEY, ""),
                headers={"Content-Type": "application/json"},
            )
        if response.status_code != 200:
            logger.warning(f"⚠️ Xendit returned {response.status_code} for payment methods")
            return None
        methods = normalize_methods(response.json())
        return methods or None
    except Exception as e:
        logger.warning(f"⚠️ Xendit API call failed, using fallback: {e}")
        return None


async def list_payment_methods(force_refresh: bool = False) -> tuple[list[dict], str]:
    """
    Returns:
        Tuple of (methods, source) where source is cache, xendit or fallback
    """
    if not force_refresh:
        cached = cache.get(PAYMENT_METHODS_CACHE_KEY)
        if cached:
            return cached, "cache"

    methods = await fetch_xendit_methods() if is_xendit_configured() else None
    source = "xendit"
    if not methods:
        methods = [dict(m) for m in FALLBACK_PAYMENT_METHODS]
        source = "fallback"

    cache.set(PAYMENT_METHODS_CACHE_KEY, methods, config.XENDIT_METHODS_CACHE_TTL_SECONDS)
    return methods, source


async def refresh_payment_methods_cache():
    """Poller callback that keeps the cache warm"""
    methods, source = await list_payment_methods(force_refresh=True)
    logger.info(f"✅ Payment methods cache refreshed ({source}) - {', '.join(m['id'] for m in methods)}")
