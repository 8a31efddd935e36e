import asyncio

import httpx

import app.services.catalog_client as catalog_client
from app.schemas.catalog import AddonTier
from app.services.catalog_client import StageScope


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def fake_client(payload=None, error=None, calls=None):
    class FakeClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            pass

        async def get(self, url, params=None):
            if calls is not None:
                calls.append((url, params))
            if error is not None:
                raise error
            return FakeResponse(payload)

    return FakeClient


def test_fetch_procedures_parses_records(monkeypatch):
    payload = {
        "data": [
            {"id": "s1", "name": "Knee Replacement", "base_cost": 180000, "category": "knee", "image": "x.png"},
            {"name": "missing id"},
        ]
    }
    monkeypatch.setattr(catalog_client.httpx, "AsyncClient", fake_client(payload))
    result = asyncio.run(catalog_client.fetch_procedures())
    assert result.degraded is False
    assert [p.id for p in result.items] == ["s1"]


def test_fetch_procedures_falls_back_on_outage(monkeypatch):
    monkeypatch.setattr(
        catalog_client.httpx, "AsyncClient", fake_client(error=httpx.ConnectError("down"))
    )
    result = asyncio.run(catalog_client.fetch_procedures())
    assert result.degraded is True
    assert len(result.items) == 6
    assert "standard procedure list" in result.notice


def test_fetch_addons_falls_back_per_category(monkeypatch):
    monkeypatch.setattr(catalog_client.httpx, "AsyncClient", fake_client(payload={"unexpected": True}))
    result = asyncio.run(catalog_client.fetch_addons("hip"))
    assert result.degraded is True
    assert {a.tier for a in result.items} == set(AddonTier)
    assert all(a.surgery_type == "hip" for a in result.items)


def test_fetch_addons_passes_category(monkeypatch):
    calls = []
    payload = [{"id": "i1", "name": "Implant", "tier": "basic", "cost": 1000}]
    monkeypatch.setattr(catalog_client.httpx, "AsyncClient", fake_client(payload, calls=calls))
    result = asyncio.run(catalog_client.fetch_addons("knee"))
    assert result.items[0].tier == AddonTier.BASIC
    assert calls[0][1] == {"surgery_type": "knee"}
    assert calls[0][0].endswith("/implants")


def test_providers_outage_is_retryable(monkeypatch):
    monkeypatch.setattr(
        catalog_client.httpx, "AsyncClient", fake_client(error=httpx.ReadTimeout("slow"))
    )
    result = asyncio.run(catalog_client.fetch_providers())
    assert result.items == []
    assert result.retryable is True
    assert result.degraded is False


def test_facilities_invalid_json_is_retryable(monkeypatch):
    monkeypatch.setattr(
        catalog_client.httpx, "AsyncClient", fake_client(payload=ValueError("not json"))
    )
    result = asyncio.run(catalog_client.fetch_facilities())
    assert result.retryable is True


def test_stage_scope_returns_result_while_open():
    async def run():
        async def fetch():
            return "fresh"

        async with StageScope("procedures") as scope:
            return await scope.run(fetch())

    assert asyncio.run(run()) == "fresh"


def test_stage_scope_drops_result_after_close():
    async def run():
        scope = StageScope("providers")
        started = asyncio.Event()

        async def slow_fetch():
            started.set()
            await asyncio.sleep(10)
            return "stale"

        pending = asyncio.ensure_future(scope.run(slow_fetch()))
        await started.wait()
        scope.close()
        return await pending

    assert asyncio.run(run()) is None


def test_closed_scope_does_not_start_fetch():
    started = []

    async def fetch():
        started.append(True)
        return "late"

    async def run():
        scope = StageScope("facilities")
        scope.close()
        return await scope.run(fetch())

    assert asyncio.run(run()) is None
    assert started == []
