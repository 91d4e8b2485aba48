"""Scripted in-memory page driver behavior."""

from __future__ import annotations

import pytest

from yamap_reactor.errors import DriverError
from yamap_reactor.testing import ScriptedDriver


def test_scripted_driver_records_calls_and_tracks_url() -> None:
    driver = ScriptedDriver()
    driver.navigate("https://yamap.com/timeline")
    driver.click(".button")

    assert driver.current_url() == "https://yamap.com/timeline"
    assert driver.calls[:2] == [
        ("navigate", "https://yamap.com/timeline"),
        ("click", ".button"),
    ]


def test_scripted_driver_heights_repeat_last_value() -> None:
    driver = ScriptedDriver(heights=[100, 200])
    assert [driver.page_height() for _ in range(3)] == [100, 200, 200]


def test_scripted_driver_failures_are_scoped_and_counted() -> None:
    driver = ScriptedDriver()
    driver.fail("click", ".a", times=2)

    driver.click(".b")
    for _ in range(2):
        with pytest.raises(DriverError):
            driver.click(".a")
    driver.click(".a")


def test_scripted_driver_failed_navigation_keeps_url() -> None:
    driver = ScriptedDriver(current="https://yamap.com/timeline")
    driver.fail("navigate")

    with pytest.raises(DriverError):
        driver.navigate("https://yamap.com/activities/1")
    assert driver.current == "https://yamap.com/timeline"
