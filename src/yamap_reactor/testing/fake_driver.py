"""In-memory `PageDriver` with scriptable results and injected failures."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from yamap_reactor.errors import DriverError

EvaluateFn = Callable[[str], Any]


@dataclass
class _Failure:
    error: Exception
    remaining: int | None


@dataclass
class ScriptedDriver:
    """Record every driver call as ``(operation, target)`` and replay scripted results.

    `heights` is consumed one value per `page_height` call; the last value
    repeats. `fail` queues errors for an operation, optionally scoped to one
    selector or URL, for `times` calls (None means every call).
    """

    current: str = "about:blank"
    heights: list[int] = field(default_factory=lambda: [1000])
    markup: str = "<html><body></body></html>"
    screenshot_bytes: bytes = b"\x89PNG\r\n\x1a\n"
    evaluate_fn: EvaluateFn | None = None
    calls: list[tuple[str, str]] = field(default_factory=list)
    typed: dict[str, str] = field(default_factory=dict)
    _failures: dict[tuple[str, str | None], list[_Failure]] = field(default_factory=dict)

    def fail(
        self,
        operation: str,
        target: str | None = None,
        *,
        times: int | None = 1,
        error: Exception | None = None,
    ) -> None:
        failure = _Failure(
            error=error or DriverError(f"scripted {operation} failure"),
            remaining=times,
        )
        self._failures.setdefault((operation, target), []).append(failure)

    def calls_for(self, operation: str) -> list[str]:
        return [target for name, target in self.calls if name == operation]

    def navigate(self, url: str) -> None:
        self._record("navigate", url)
        self.current = url

    def wait_visible(self, selector: str, timeout_ms: int | None = None) -> None:
        self._record("wait_visible", selector)

    def evaluate(self, script: str) -> Any:
        self._record("evaluate", script)
        if self.evaluate_fn is None:
            return None
        return self.evaluate_fn(script)

    def click(self, selector: str, timeout_ms: int | None = None) -> None:
        self._record("click", selector)

    def send_keys(self, selector: str, text: str) -> None:
        self._record("send_keys", selector)
        self.typed[selector] = text

    def scroll_to_bottom(self) -> None:
        self._record("scroll_to_bottom", "")

    def current_url(self) -> str:
        self._record("current_url", "")
        return self.current

    def page_height(self) -> int:
        self._record("page_height", "")
        if len(self.heights) > 1:
            return self.heights.pop(0)
        return self.heights[0]

    def reload(self) -> None:
        self._record("reload", self.current)

    def screenshot(self) -> bytes:
        self._record("screenshot", "")
        return self.screenshot_bytes

    def content(self) -> str:
        self._record("content", "")
        return self.markup

    def _record(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        for key in ((operation, target), (operation, None)):
            queue = self._failures.get(key)
            if not queue:
                continue
            failure = queue[0]
            if failure.remaining is not None:
                failure.remaining -= 1
                if failure.remaining <= 0:
                    queue.pop(0)
            raise failure.error
