from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from urllib.parse import quote

import anyio
import pytest
from fastapi.testclient import TestClient

from serve_map.core.config import ServerSettings
from serve_map.core.saves.catalog_service import SaveCatalogService
from serve_map.core.saves.models import SaveScanResult
from serve_map.core.saves.scanner_service import SaveScannerService
from serve_map.web.server import create_app

BASE_URL = "https://sf.example.com"
MAP_ORIGIN = "https://satisfactory-calculator.com"


class SlowScanner(SaveScannerService):
    def scan(self, save_dir: Path) -> SaveScanResult:
        time.sleep(0.5)
        return super().scan(save_dir)


@pytest.fixture
def settings(save_dir: Path) -> ServerSettings:
    return ServerSettings(base_url=BASE_URL, save_dir=save_dir)


@pytest.fixture
def client(settings: ServerSettings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def test_latest_autosave_is_served(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Factory_autosave_0.sav", mtime_offset=0, content=b"old")
    make_save("Factory_autosave_1.sav", mtime_offset=60, content=b"new")

    response = client.get("/map/Factory")

    assert response.status_code == 200
    assert response.content == b"new"
    assert response.headers["x-save-file"] == "Factory_autosave_1.sav"
    assert "Factory_autosave_1.sav" in response.headers["content-disposition"]


def test_rotated_slot_with_lower_number_wins_when_newer(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Factory_autosave_2.sav", mtime_offset=10, content=b"slot2")
    make_save("Factory_autosave_0.sav", mtime_offset=20, content=b"slot0")

    assert client.get("/map/Factory").content == b"slot0"


def test_cors_header_for_map_origin(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Alpha.sav")

    response = client.get("/map/Alpha", headers={"Origin": MAP_ORIGIN})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == MAP_ORIGIN
    assert response.headers["access-control-allow-credentials"] == "true"


def test_no_cors_header_without_allowed_origin(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Alpha.sav")

    plain = client.get("/map/Alpha")
    foreign = client.get("/map/Alpha", headers={"Origin": "https://elsewhere.example"})

    assert plain.status_code == 200
    assert "access-control-allow-origin" not in plain.headers
    assert foreign.status_code == 200
    assert "access-control-allow-origin" not in foreign.headers


def test_cors_preflight(client: TestClient) -> None:
    response = client.options(
        "/map/Alpha",
        headers={"Origin": MAP_ORIGIN, "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == MAP_ORIGIN
    assert "GET" in response.headers["access-control-allow-methods"]


def test_plain_options_request_is_accepted(client: TestClient) -> None:
    assert client.options("/anything/at/all").status_code == 204


def test_unknown_save_is_not_found(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Alpha.sav")

    response = client.get("/map/Nonexistent", headers={"Origin": MAP_ORIGIN})

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "save_not_found"
    assert body["name"] == "Nonexistent"
    assert response.headers["access-control-allow-origin"] == MAP_ORIGIN


@pytest.mark.parametrize("name", ["a%5Cb", "%20"])
def test_invalid_names_are_rejected(client: TestClient, make_save: Callable[..., Path], name: str) -> None:
    make_save("Alpha.sav")

    response = client.get(f"/map/{name}")

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_name"


def test_dotted_base_name_is_listed_and_served(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Update 8.1 world_autosave_0.sav", content=b"u8")

    assert f'href="{BASE_URL}/map/Update%208.1%20world"' in client.get("/map").text

    response = client.get("/map/Update%208.1%20world")

    assert response.status_code == 200
    assert response.content == b"u8"
    assert response.headers["x-save-file"] == quote("Update 8.1 world_autosave_0.sav")


def test_index_lists_saves_with_absolute_links(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Beta.sav")
    make_save("Alpha.sav")

    response = client.get("/map")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    html = response.text
    assert html.count(f'href="{BASE_URL}/map/') == 2
    assert html.index(f'href="{BASE_URL}/map/Alpha"') < html.index(f'href="{BASE_URL}/map/Beta"')


def test_index_links_to_interactive_map(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Noobville_autosave_0.sav")

    html = client.get("/map").text

    assert "interactive-map?url=https%3A%2F%2Fsf.example.com%2Fmap%2FNoobville" in html


def test_index_escapes_names(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("<i>World & co.sav")

    html = client.get("/map").text

    assert "&lt;i&gt;World &amp; co" in html
    assert "<i>World" not in html


def test_empty_directory_renders_empty_index(client: TestClient) -> None:
    response = client.get("/map")

    assert response.status_code == 200
    assert "<html" in response.text
    assert "No saves found." in response.text
    assert "/map/" not in response.text


def test_new_file_is_visible_on_next_request(client: TestClient, make_save: Callable[..., Path]) -> None:
    make_save("Alpha.sav")
    assert client.get("/map/Gamma").status_code == 404

    make_save("Gamma_autosave_0.sav", content=b"gamma")

    assert client.get("/map/Gamma").content == b"gamma"
    assert f'href="{BASE_URL}/map/Gamma"' in client.get("/map").text


def test_new_file_is_visible_after_cache_window(save_dir: Path, make_save: Callable[..., Path]) -> None:
    clock = [1000.0]
    settings = ServerSettings(base_url=BASE_URL, save_dir=save_dir, cache_ttl_seconds=30)
    service = SaveCatalogService(save_dir, cache_ttl_seconds=30, clock=lambda: clock[0])
    app = create_app(settings, service=service)
    make_save("Alpha.sav")

    with TestClient(app) as client:
        assert client.get("/map/Alpha").status_code == 200

        make_save("Gamma.sav")
        assert client.get("/map/Gamma").status_code == 404

        clock[0] += 30
        assert client.get("/map/Gamma").status_code == 200


def test_vanished_directory_is_a_server_fault(client: TestClient, save_dir: Path) -> None:
    os.rmdir(save_dir)

    response = client.get("/map")

    assert response.status_code == 500
    assert response.json()["error"] == "save_dir_unreadable"


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_slow_scan_returns_service_unavailable(settings: ServerSettings, save_dir: Path) -> None:
    service = SaveCatalogService(save_dir, scanner=SlowScanner(), timeout_seconds=0.05)

    with TestClient(create_app(settings, service=service)) as client:
        response = client.get("/map")

    assert response.status_code == 503
    assert response.json()["error"] == "timeout"


def test_unreadable_latest_file_is_a_server_fault(
    client: TestClient,
    make_save: Callable[..., Path],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    make_save("Alpha.sav")

    def deny(path: Path) -> os.stat_result:
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(SaveCatalogService, "_check_readable", staticmethod(deny))

    response = client.get("/map/Alpha")

    assert response.status_code == 500
    assert response.json() == {
        "error": "save_unreadable",
        "message": "The latest save for Alpha could not be opened",
        "name": "Alpha",
    }


def test_streaming_failure_is_logged(
    client: TestClient,
    make_save: Callable[..., Path],
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    make_save("Alpha.sav")

    async def broken_open_file(*args: object, **kwargs: object) -> None:
        raise OSError(5, "Input/output error")

    monkeypatch.setattr(anyio, "open_file", broken_open_file)

    with caplog.at_level(logging.ERROR, logger="serve_map.http"):
        with pytest.raises(OSError):
            client.get("/map/Alpha")

    assert "Streaming" in caplog.text
    assert "Alpha.sav failed" in caplog.text
