"""Browser contracts."""

from .driver import PageDriver, PlaywrightPageDriver
from .session import BrowserSessionOptions, PlaywrightBrowserSession

__all__ = [
    "BrowserSessionOptions",
    "PageDriver",
    "PlaywrightBrowserSession",
    "PlaywrightPageDriver",
]
