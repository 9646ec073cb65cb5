from __future__ import annotations

import pytest
import requests

from daily_kpi.ingest.fetch_csv import cache_path_for, download_csv


class FakeResponse:
    def __init__(self, content: bytes, status: int = 200) -> None:
        self.content = content
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


def test_download_csv_caches(monkeypatch, tmp_path) -> None:
    calls: list[str] = []

    def fake_get(url, headers=None, timeout=None):
        calls.append(url)
        return FakeResponse(b"date,units\n01-01-2025,1\n")

    monkeypatch.setattr(requests, "get", fake_get)
    url = "https://example.org/data/generation.csv?v=1"

    p1 = download_csv(url, tmp_path)
    p2 = download_csv(url, tmp_path)
    assert p1 == p2 == cache_path_for(url, tmp_path)
    assert p1.name.startswith("generation_")
    assert calls == [url]

    download_csv(url, tmp_path, force=True)
    assert len(calls) == 2


def test_download_csv_raises_on_http_error(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(requests, "get", lambda *a, **k: FakeResponse(b"", status=404))
    with pytest.raises(requests.HTTPError):
        download_csv("https://example.org/missing.csv", tmp_path)
