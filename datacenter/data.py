from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import streamlit as st

from datacenter.api import ApiClient
from datacenter.cache import TTLCache
from datacenter.hierarchy import Hierarchy
from datacenter.navigator import HierarchyNavigator

DEFAULT_API_BASE = "http://localhost/API"
ENV_PREFIX = "DATACENTER_"

# ---------------- safe secrets helper ----------------
def _get_secret(key: str, default: Optional[str] = None) -> Optional[str]:
    """Return st.secrets[key] if available; otherwise default (no exceptions)."""
    try:
        return st.secrets[key]  # type: ignore[index]
    except Exception:
        return default

# ---------------- settings ----------------
@dataclass(frozen=True)
class Settings:
    api_base: str = DEFAULT_API_BASE
    timeout: float = 12.0
    max_retries: int = 1
    retry_delay: float = 0.35
    cache_ttl: float = 120.0
    page_size: int = 20
    log_level: str = "INFO"


def _lookup(key: str, env: Mapping[str, str]) -> Optional[str]:
    # secrets win over the environment
    val = _get_secret(key, None)
    if val not in (None, ""):
        return str(val)
    val = env.get(ENV_PREFIX + key)
    return val if val not in (None, "") else None


def _as(kind, raw: Optional[str], default):
    if raw is None:
        return default
    try:
        return kind(raw)
    except (TypeError, ValueError):
        logging.getLogger(__name__).warning("ignoring bad setting value %r", raw)
        return default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve settings, preferring:
      1) st.secrets (API_BASE, TIMEOUT, ...)
      2) DATACENTER_* environment variables
      3) the API base typed into the sidebar (session override)
      4) defaults
    """
    env = os.environ if env is None else env
    d = Settings()
    api_base = _lookup("API_BASE", env) or _session_api_base() or d.api_base
    return Settings(
        api_base=api_base.rstrip("/"),
        timeout=_as(float, _lookup("TIMEOUT", env), d.timeout),
        max_retries=max(0, _as(int, _lookup("MAX_RETRIES", env), d.max_retries)),
        retry_delay=max(0.0, _as(float, _lookup("RETRY_DELAY", env), d.retry_delay)),
        cache_ttl=_as(float, _lookup("CACHE_TTL", env), d.cache_ttl),
        page_size=max(1, _as(int, _lookup("PAGE_SIZE", env), d.page_size)),
        log_level=(_lookup("LOG_LEVEL", env) or d.log_level).upper(),
    )


def _session_api_base() -> Optional[str]:
    try:
        val = st.session_state.get("api_base")
    except Exception:
        return None
    return str(val) if val else None


def get_api_base() -> str:
    return load_settings().api_base


def set_api_base(url: str):
    st.session_state["api_base"] = str(url).strip().rstrip("/")

# ---------------- navigators ----------------
def get_navigator(hierarchy: Hierarchy, settings: Optional[Settings] = None) -> HierarchyNavigator:
    """One navigator per hierarchy per browser session; survives reruns."""
    key = f"nav:{hierarchy.name}"
    nav = st.session_state.get(key)
    if nav is None:
        settings = settings or load_settings()
        client = ApiClient(
            settings.api_base,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
        )
        cache = TTLCache(ttl=settings.cache_ttl, store=st.session_state, prefix=f"dc-cache:{hierarchy.name}:")
        nav = HierarchyNavigator(hierarchy, client, cache=cache, page_size=settings.page_size)
        st.session_state[key] = nav
    return nav

# ---------------- logging ----------------
def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

# ---------------- sidebar controls ----------------
API_BASE_WIDGET = "api_base_input"


def clear_session_caches():
    """Drop every navigator and cached response held for this browser session."""
    for k in [k for k in list(st.session_state.keys()) if str(k).startswith(("nav:", "dc-cache:"))]:
        del st.session_state[k]


def _pinned_api_base() -> Optional[str]:
    val = _lookup("API_BASE", os.environ)
    return val.rstrip("/") if val else None


def _on_api_base_change():
    new_base = str(st.session_state.get(API_BASE_WIDGET) or "").strip().rstrip("/")
    # only a real change rebuilds the navigators
    if new_base and new_base != (_session_api_base() or DEFAULT_API_BASE):
        set_api_base(new_base)
        clear_session_caches()


def api_controls():
    with st.sidebar:
        st.subheader("API")
        pinned = _pinned_api_base()
        if pinned:
            st.text_input(
                "API base URL",
                value=pinned,
                disabled=True,
                help="Set through API_BASE in secrets or DATACENTER_API_BASE in the environment."
            )
        else:
            if API_BASE_WIDGET not in st.session_state:
                st.session_state[API_BASE_WIDGET] = get_api_base()
            st.text_input(
                "API base URL",
                key=API_BASE_WIDGET,
                on_change=_on_api_base_change,
                help="Root of the party API, e.g. https://example.org/API. If API_BASE is set in secrets, that will be used automatically."
            )

        if st.button("Reload data"):
            clear_session_caches()
            st.toast("Data cache cleared. It will reload on next access.")
