from __future__ import annotations

import io
import json
import zipfile

from devkit.timezone import today_local
from fastapi.testclient import TestClient

from provider_directory.config import ProviderDirectorySettings
from provider_directory.core.models import ProviderRecord, format_update_label
from provider_directory.core.refresh import FeedFetcher, RecordParser
from provider_directory.monitoring.app import create_app
from provider_directory.runtime import build_runtime


class StubFetcher(FeedFetcher):
    async def fetch(self) -> bytes:
        return b"feed"


class StubParser(RecordParser):
    def parse(self, raw: bytes) -> list[ProviderRecord]:
        return [
            ProviderRecord(location_id=1, institution_id=10, title="Ordinace Letná", phone_number="+420 111 222 333"),
            ProviderRecord(location_id=2, institution_id=20, title="Ordinace Karlín", category=("Zubař",)),
        ]


def _client(tmp_path) -> TestClient:
    settings = ProviderDirectorySettings(
        DATABASE_URL=None,
        SNAPSHOT_DIR=str(tmp_path),
        REFRESH_SCHEDULE_ENABLED=False,
    )
    runtime = build_runtime(settings, fetcher=StubFetcher(), parser=StubParser())
    return TestClient(create_app(runtime))


def test_probes_and_metrics(tmp_path) -> None:
    with _client(tmp_path) as client:
        assert client.get("/healthz").json()["data"] == {"status": "ok"}
        assert client.get("/readyz").status_code == 200
        client.post("/internal/refresh")
        metrics = client.get("/metrics")

    assert metrics.status_code == 200
    assert 'refresh_run_total{status="success"} 1.0' in metrics.text


def test_download_before_first_update(tmp_path) -> None:
    with _client(tmp_path) as client:
        status = client.get("/v1/providers/status")
        download = client.get("/v1/providers/all")

    assert status.json()["data"] == {"lastUpdate": None, "updating": False}
    assert download.status_code == 404
    assert download.json() == {
        "success": False,
        "error": {"code": "SNAPSHOT_UNAVAILABLE", "message": "No provider snapshot has been published yet."},
    }


def test_refresh_then_download_snapshot(tmp_path) -> None:
    label = format_update_label(today_local("Europe/Prague"))
    with _client(tmp_path) as client:
        refresh = client.post("/internal/refresh")
        status = client.get("/v1/providers/status")
        download = client.get("/v1/providers/all")

    assert refresh.status_code == 200
    assert refresh.json()["data"] == {"message": "Data successfully updated.", "lastUpdate": label}
    assert refresh.json()["meta"] == {"providerCount": 2, "batchCount": 1}
    assert status.json()["data"] == {"lastUpdate": label, "updating": False}
    assert download.status_code == 200
    assert download.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(download.content)) as archive:
        entries = json.loads(archive.read("providers.json"))
    assert [entry["title"] for entry in entries] == ["Ordinace Letná", "Ordinace Karlín"]


def test_download_while_updating(tmp_path) -> None:
    client = _client(tmp_path)
    client.app.state.runtime.gate._updating = True

    response = client.get("/v1/providers/all")

    assert response.status_code == 422
    assert response.json()["error"] == {"code": "UPDATE_IN_PROGRESS", "message": "Server is updating data."}


def test_provider_detail_lookups(tmp_path) -> None:
    with _client(tmp_path) as client:
        client.post("/internal/refresh")
        detail = client.get("/v1/providers/1/10")
        missing = client.get("/v1/providers/1/20")
        many = client.post(
            "/v1/providers/details",
            json={"providersIds": [{"locationId": 2, "institutionId": 20}, {"locationId": 1, "institutionId": 10}]},
        )
        partly_missing = client.post(
            "/v1/providers/details",
            json={"providersIds": [{"locationId": 1, "institutionId": 10}, {"locationId": 5, "institutionId": 50}]},
        )

    assert detail.status_code == 200
    assert detail.json()["data"]["phoneNumber"] == "+420 111 222 333"
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"
    details = many.json()["data"]["healthcareProvidersDetails"]
    assert [item["locationId"] for item in details] == [2, 1]
    assert partly_missing.status_code == 404


def test_details_request_validation(tmp_path) -> None:
    with _client(tmp_path) as client:
        response = client.post("/v1/providers/details", json={"providersIds": [{"locationId": "x"}]})

    assert response.status_code == 422
    assert response.json()["success"] is False
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
