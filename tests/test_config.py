from __future__ import annotations

import json
from pathlib import Path

import pytest

from status_checks.config import ConfigError, Site, load_settings, load_sites
from status_checks.main import main


def _write(path: Path, obj: object) -> Path:
    path.write_text(json.dumps(obj), encoding="utf-8")
    return path


def test_load_sites_json(tmp_path: Path) -> None:
    p = _write(
        tmp_path / "config.json",
        [
            {"name": "Shop", "url": "https://shop.example.com", "expectedStatus": 200},
            {"name": "API", "url": "https://api.example.com/health", "expectedStatus": 204},
        ],
    )
    sites = load_sites(p)
    assert [s.name for s in sites] == ["Shop", "API"]
    assert sites[1].expected_status == 204


def test_load_sites_yaml(tmp_path: Path) -> None:
    p = tmp_path / "sites.yaml"
    p.write_text(
        "- name: Shop\n  url: https://shop.example.com\n  expectedStatus: 200\n",
        encoding="utf-8",
    )
    assert load_sites(p) == [Site(name="Shop", url="https://shop.example.com", expected_status=200)]


def test_duplicate_urls_are_allowed(tmp_path: Path) -> None:
    p = _write(
        tmp_path / "config.json",
        [
            {"name": "A", "url": "https://same.example.com", "expectedStatus": 200},
            {"name": "B", "url": "https://same.example.com", "expectedStatus": 200},
        ],
    )
    assert len(load_sites(p)) == 2


@pytest.mark.parametrize(
    "content",
    [
        "not json at all",
        "[]",
        "{}",
        json.dumps([{"name": "x", "url": "https://x.example.com"}]),
        json.dumps([{"name": "x", "url": "x.example.com", "expectedStatus": 200}]),
        json.dumps([{"name": "", "url": "https://x.example.com", "expectedStatus": 200}]),
        json.dumps([{"name": "x", "url": "https://x.example.com", "expectedStatus": 700}]),
        json.dumps(["https://x.example.com"]),
    ],
)
def test_invalid_site_list_raises(tmp_path: Path, content: str) -> None:
    p = tmp_path / "config.json"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_sites(p)


def test_missing_site_list_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_sites(tmp_path / "missing.json")


def test_load_settings_defaults_and_overrides() -> None:
    defaults = load_settings({})
    assert defaults.probe_timeout_seconds == 15.0
    assert defaults.check_concurrency == 1
    assert defaults.discord_webhook_url is None
    assert defaults.status_cache_path == "status_cache.json"

    s = load_settings(
        {
            "DISCORD_WEBHOOK_URL": "https://discord.example.com/api/webhooks/1/x",
            "PROBE_TIMEOUT_SECONDS": "3.5",
            "CHECK_CONCURRENCY": "4",
            "STATUS_CACHE_PATH": "/tmp/cache.json",
            "LOG_LEVEL": "  ",
        }
    )
    assert s.discord_webhook_url == "https://discord.example.com/api/webhooks/1/x"
    assert s.probe_timeout_seconds == 3.5
    assert s.check_concurrency == 4
    assert s.status_cache_path == "/tmp/cache.json"
    assert s.log_level == "INFO"


@pytest.mark.parametrize("env", [{"PROBE_TIMEOUT_SECONDS": "soon"}, {"CHECK_CONCURRENCY": "0"}])
def test_load_settings_invalid_raises(env: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        load_settings(env)


def test_main_exits_nonzero_on_bad_site_list(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    bad = tmp_path / "config.json"
    bad.write_text("{oops", encoding="utf-8")
    assert main(["--config", str(bad)]) == 1
    assert not (tmp_path / "status_cache.json").exists()


def test_main_uses_log_level_from_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import status_checks.main as main_module

    levels: list[str] = []
    monkeypatch.setattr(main_module, "configure_logging", levels.append)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    bad = tmp_path / "config.json"
    bad.write_text("[]", encoding="utf-8")

    assert main(["--config", str(bad)]) == 1
    assert levels == ["WARNING"]

    levels.clear()
    assert main(["--config", str(bad), "--log-level", "DEBUG"]) == 1
    assert levels == ["DEBUG"]


def test_main_exits_nonzero_on_invalid_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHECK_CONCURRENCY", "0")
    assert main(["--config", "unused.json"]) == 1
