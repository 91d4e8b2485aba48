"""Feed snapshot strategies and decoding into typed `FeedItem` records.

Two encodings of the same client-side state are supported because the site has
shipped both over time:

* direct-object: evaluate a script that returns the in-memory state object;
  the driver serializes it, so no string round-trip happens here.
* embedded-script: fetch rendered markup and capture the JSON assigned to the
  global state variable inside a ``<script>`` block.

The activity listing exposes no state blob, so a third strategy harvests
detail links from the rendered entries instead.
"""

from __future__ import annotations

from collections.abc import Sequence
import json
import re
from typing import Any, Protocol

from yamap_reactor.browser.driver import PageDriver
from yamap_reactor.errors import DecodeFailedError, DriverError, NoFeedDataError
from yamap_reactor.models import DEFAULT_ITEM_URL_TEMPLATE, FeedItem, FeedItemKind

DEFAULT_STATE_VARIABLE = "window.__NUXT__"
DEFAULT_FEEDS_PATH = ("state", "timeline", "feeds")

_ACTIVITY_HREF_RE = re.compile(r"^(?:https?://[^/]+)?/activities/(\d+)/?(?:[?#].*)?$")


class SnapshotStrategy(Protocol):
    name: str

    def capture(self, driver: PageDriver) -> Any:
        """Pull the raw feed payload from the live page."""

    def decode(self, payload: Any, *, url_template: str) -> tuple[FeedItem, ...]:
        """Decode a captured payload into feed items."""


class NuxtStateStrategy:
    """Direct-object extraction of ``window.__NUXT__.state.timeline.feeds``."""

    name = "nuxt-state"

    def __init__(
        self,
        *,
        state_variable: str = DEFAULT_STATE_VARIABLE,
        feeds_path: Sequence[str] = DEFAULT_FEEDS_PATH,
    ) -> None:
        self._script = build_state_lookup_script(state_variable, feeds_path)

    @property
    def script(self) -> str:
        return self._script

    def capture(self, driver: PageDriver) -> Any:
        try:
            payload = driver.evaluate(self._script)
        except DriverError as exc:
            raise NoFeedDataError(f"Could not evaluate feed state script: {exc}") from exc
        if payload is None:
            raise NoFeedDataError("Feed state object is not present on the page yet.")
        return payload

    def decode(self, payload: Any, *, url_template: str) -> tuple[FeedItem, ...]:
        return decode_feed_items(payload, url_template=url_template)


class EmbeddedScriptStrategy:
    """Regex extraction of the state assignment from rendered page markup."""

    name = "embedded-script"

    def __init__(
        self,
        *,
        state_variable: str = DEFAULT_STATE_VARIABLE,
        feeds_path: Sequence[str] = DEFAULT_FEEDS_PATH,
    ) -> None:
        self._pattern = build_state_assignment_pattern(state_variable)
        self._feeds_path = tuple(feeds_path)

    @property
    def pattern(self) -> re.Pattern[str]:
        return self._pattern

    def capture(self, driver: PageDriver) -> Any:
        try:
            markup = driver.content()
        except DriverError as exc:
            raise NoFeedDataError(f"Could not read page markup: {exc}") from exc
        match = self._pattern.search(markup)
        if match is None:
            raise NoFeedDataError("No script block assigns the feed state variable.")
        return match.group("state")

    def decode(self, payload: Any, *, url_template: str) -> tuple[FeedItem, ...]:
        raw = str(payload)
        try:
            state = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DecodeFailedError(
                f"Embedded feed state is not valid JSON: {exc}", raw_payload=raw
            ) from exc

        feeds = state
        walked: list[str] = []
        for key in self._feeds_path:
            if not isinstance(feeds, dict):
                location = ".".join(walked) or "top level"
                raise DecodeFailedError(
                    f"Embedded feed state at '{location}' must be an object, "
                    f"got {type(feeds).__name__}.",
                    raw_payload=raw,
                )
            if feeds.get(key) is None:
                raise NoFeedDataError(
                    f"Embedded feed state has no '{'.'.join(self._feeds_path)}' entry."
                )
            feeds = feeds[key]
            walked.append(key)
        try:
            return decode_feed_items(feeds, url_template=url_template)
        except DecodeFailedError as exc:
            raise DecodeFailedError(str(exc), raw_payload=raw) from exc


class ActivityLinkStrategy:
    """Harvest ``/activities/<id>`` links from rendered listing entries."""

    name = "activity-links"

    def __init__(self, link_selector: str) -> None:
        self._script = (
            "Array.from(document.querySelectorAll("
            f"{json.dumps(link_selector)}"
            ")).map((a) => a.getAttribute('href'))"
        )

    @property
    def script(self) -> str:
        return self._script

    def capture(self, driver: PageDriver) -> Any:
        try:
            hrefs = driver.evaluate(self._script)
        except DriverError as exc:
            raise NoFeedDataError(f"Could not query activity links: {exc}") from exc
        if not hrefs:
            raise NoFeedDataError("No activity entries are rendered yet.")
        return hrefs

    def decode(self, payload: Any, *, url_template: str) -> tuple[FeedItem, ...]:
        if not isinstance(payload, list):
            raise DecodeFailedError(
                f"Expected a list of hrefs, got {type(payload).__name__}.",
                raw_payload=_dump_payload(payload),
            )
        items: list[FeedItem] = []
        emitted: set[int] = set()
        for href in payload:
            if not isinstance(href, str):
                continue
            match = _ACTIVITY_HREF_RE.match(href.strip())
            if match is None:
                continue
            item_id = int(match.group(1))
            if item_id == 0 or item_id in emitted:
                continue
            emitted.add(item_id)
            # The listing carries no reaction state; the detail-page pre-check decides.
            items.append(
                FeedItem(
                    id=item_id,
                    kind=FeedItemKind.POST,
                    reacted_by_viewer=False,
                    url_template=url_template,
                )
            )
        return tuple(items)


class FeedSnapshotReader:
    """Read one snapshot of the feed through a pluggable strategy."""

    def __init__(
        self,
        strategy: SnapshotStrategy,
        *,
        url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
    ) -> None:
        self._strategy = strategy
        self._url_template = url_template

    @property
    def strategy(self) -> SnapshotStrategy:
        return self._strategy

    def read(self, driver: PageDriver) -> tuple[FeedItem, ...]:
        """Return the snapshot's feed items; raise NoFeedDataError or DecodeFailedError."""
        payload = self._strategy.capture(driver)
        try:
            items = self._strategy.decode(payload, url_template=self._url_template)
        except DecodeFailedError as exc:
            if not exc.raw_payload:
                exc.raw_payload = _dump_payload(payload)
            raise
        return items


def decode_feed_items(
    payload: Any,
    *,
    url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
) -> tuple[FeedItem, ...]:
    """Decode timeline feed entries; entries without an activity become OTHER items."""
    if not isinstance(payload, list):
        raise DecodeFailedError(
            f"Feed state must be a list of entries, got {type(payload).__name__}.",
            raw_payload=_dump_payload(payload),
        )

    items: list[FeedItem] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise DecodeFailedError(
                f"Feed entry {index} must be an object, got {type(entry).__name__}.",
                raw_payload=_dump_payload(payload),
            )
        activity = entry.get("activity")
        if activity is None:
            other = _decode_other_entry(entry, url_template)
            if other is not None:
                items.append(other)
            continue
        if not isinstance(activity, dict):
            raise DecodeFailedError(
                f"Feed entry {index} has a non-object 'activity'.",
                raw_payload=_dump_payload(payload),
            )

        activity_id = _expect_int(activity.get("id", 0), f"feed[{index}].activity.id", payload)
        if activity_id == 0:
            continue
        items.append(
            FeedItem(
                id=activity_id,
                kind=FeedItemKind.POST,
                reacted_by_viewer=_viewer_has_reacted(activity, index, payload),
                url_template=url_template,
            )
        )
    return tuple(items)


def build_state_lookup_script(state_variable: str, feeds_path: Sequence[str]) -> str:
    """Build a null-safe expression returning the feeds object or null."""
    accessors = [state_variable]
    for key in feeds_path:
        accessors.append(f"{accessors[-1]}.{key}")
    guard = " && ".join(accessors)
    return (
        "(() => {\n"
        f"  if ({guard}) {{\n"
        f"    return {accessors[-1]};\n"
        "  }\n"
        "  return null;\n"
        "})()"
    )


def build_state_assignment_pattern(state_variable: str) -> re.Pattern[str]:
    """Anchor on ``<state_variable>=<json>;</script>``."""
    return re.compile(
        rf"{re.escape(state_variable)}\s*=\s*(?P<state>.*?);\s*</script>",
        re.DOTALL,
    )


def _viewer_has_reacted(activity: dict[str, Any], index: int, payload: Any) -> bool:
    reactions = activity.get("emoji_reactions")
    if reactions is None:
        return False
    if not isinstance(reactions, list):
        raise DecodeFailedError(
            f"feed[{index}].activity.emoji_reactions must be a list.",
            raw_payload=_dump_payload(payload),
        )
    for reaction in reactions:
        if not isinstance(reaction, dict):
            raise DecodeFailedError(
                f"feed[{index}].activity.emoji_reactions entries must be objects.",
                raw_payload=_dump_payload(payload),
            )
        flag = reaction.get("viewer_has_reacted", False)
        if not isinstance(flag, bool):
            raise DecodeFailedError(
                f"feed[{index}].activity.emoji_reactions[].viewer_has_reacted must be boolean.",
                raw_payload=_dump_payload(payload),
            )
        if flag:
            return True
    return False


def _decode_other_entry(entry: dict[str, Any], url_template: str) -> FeedItem | None:
    raw_id = entry.get("id")
    if isinstance(raw_id, bool) or not isinstance(raw_id, int) or raw_id == 0:
        return None
    return FeedItem(
        id=raw_id,
        kind=FeedItemKind.OTHER,
        reacted_by_viewer=False,
        url_template=url_template,
    )


def _expect_int(value: Any, label: str, payload: Any) -> int:
    if value is None:
        return 0
    # JS numbers can arrive as integral floats after driver serialization.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeFailedError(
            f"{label} must be an integer, got {type(value).__name__}.",
            raw_payload=_dump_payload(payload),
        )
    return value


def _dump_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False, indent=2, default=str)
    except (TypeError, ValueError):
        return repr(payload)
