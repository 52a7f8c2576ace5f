"""Web UI: one page per view panel."""

from .app import create_app, AppServices, SessionState
from .navigation import ViewState, NAV_ITEMS

__all__ = ["create_app", "AppServices", "SessionState", "ViewState", "NAV_ITEMS"]
