from __future__ import annotations

import pytest

from status_checks.status import Reachable, Status, Unreachable, classify, parse_status


@pytest.mark.parametrize(
    ("code", "expected", "status"),
    [
        (200, 200, Status.UP),
        (301, 301, Status.UP),
        (404, 404, Status.UP),
        (500, 200, Status.DEGRADED),
        (404, 200, Status.DEGRADED),
        (200, 204, Status.DEGRADED),
    ],
)
def test_classify_reachable(code: int, expected: int, status: Status) -> None:
    assert classify(Reachable(status_code=code), expected) is status


def test_classify_unreachable_is_down() -> None:
    obs = Unreachable(error_code="ConnectTimeout", error_message="timed out")
    assert classify(obs, 200) is Status.DOWN


def test_parse_status_accepts_current_and_legacy_labels() -> None:
    assert parse_status("UP") is Status.UP
    assert parse_status("DEGRADED") is Status.DEGRADED
    assert parse_status("POTENCIÁLNÍ PROBLÉM") is Status.DEGRADED
    assert parse_status(" down ") is Status.DOWN
    assert parse_status("UNKNOWN") is None
    assert parse_status(1) is None


def test_status_label_for_titles() -> None:
    assert Status.UP.label == "UP"
    assert Status.DEGRADED.label == "POTENTIAL PROBLEM"
    assert Status.DOWN.label == "DOWN"
