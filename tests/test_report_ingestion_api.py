"""
tests/test_report_ingestion_api.py

HTTP contract tests for the report ingestion endpoints.

Each test builds its own application around an isolated ReportQueue and
inspects the queue directly. The lifespan (and so the shuffler worker) is
not started, so nothing drains the queue behind the test's back.
"""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.services.report_queue import ReportQueue
from reports.envelope import DecryptedReport, EncryptedEnvelope, UnconfiguredDecryptor
from reports.errors import DecryptionError

SCENARIO = {
    "yos": 2023,
    "yoi": 2022,
    "wos": 5,
    "woi": 3,
    "metric_value": 7,
    "metric_hash": "abc",
    "country_code": "US",
    "platform": "winx64",
    "version": "1.2.3",
    "channel": "release",
    "refcode": "none",
}


class _EchoDecryptor:
    def decrypt(self, envelope: EncryptedEnvelope) -> DecryptedReport:
        if envelope.ciphertext == b"garbage":
            raise DecryptionError("Envelope could not be decrypted.")
        return DecryptedReport(plaintext=envelope.ciphertext[::-1])


@pytest.fixture()
def queue() -> ReportQueue:
    return ReportQueue(max_batches=8)


@pytest.fixture()
def client(queue: ReportQueue) -> TestClient:
    return TestClient(create_app(queue=queue, decryptor=_EchoDecryptor()))


def _drain(queue: ReportQueue) -> list[tuple]:
    batches = []
    while not queue.empty():
        batches.append(queue.get_nowait())
    return batches


# ---------------------------------------------------------------------------
# POST /reports
# ---------------------------------------------------------------------------


class TestClearEndpoint:
    def test_valid_batch_returns_empty_200(self, client: TestClient, queue: ReportQueue) -> None:
        response = client.post("/reports", content=json.dumps([SCENARIO]))

        assert response.status_code == 200
        assert response.content == b""
        assert len(_drain(queue)) == 1

    def test_n_objects_become_one_batch_in_order(self, client: TestClient, queue: ReportQueue) -> None:
        objects = [dict(SCENARIO, metric_value=value) for value in range(6)]

        response = client.post("/reports", content=json.dumps(objects))

        assert response.status_code == 200
        (batch,) = _drain(queue)
        assert [report.metric_value for report in batch] == list(range(6))

    def test_separate_requests_are_separate_batches(self, client: TestClient, queue: ReportQueue) -> None:
        client.post("/reports", content=json.dumps([SCENARIO, SCENARIO]))
        client.post("/reports", content=json.dumps([SCENARIO]))

        assert [len(batch) for batch in _drain(queue)] == [2, 1]

    def test_reordered_resubmission_lands_in_same_crowd(self, client: TestClient, queue: ReportQueue) -> None:
        reordered = dict(reversed(list(SCENARIO.items())))
        client.post("/reports", content=json.dumps([SCENARIO]))
        client.post("/reports", content=json.dumps([reordered], indent=2))

        first, second = _drain(queue)
        assert first[0].crowd_id() == second[0].crowd_id()
        assert first[0].crowd_id() == "ac357e88098572115fb4bba0217aa767c803a0a8"

    @pytest.mark.parametrize(
        "body",
        [
            "{not json",
            "null",
            json.dumps(SCENARIO),
            json.dumps([SCENARIO, dict(SCENARIO, yos="2023")]),
        ],
    )
    def test_malformed_body_returns_400_and_enqueues_nothing(
        self, client: TestClient, queue: ReportQueue, body: str
    ) -> None:
        response = client.post("/reports", content=body)

        assert response.status_code == 400
        assert response.json()["detail"]
        assert queue.empty()

    def test_empty_array_returns_200_without_enqueue(self, client: TestClient, queue: ReportQueue) -> None:
        response = client.post("/reports", content="[]")

        assert response.status_code == 200
        assert queue.empty()

    def test_full_queue_returns_503_with_retry_after(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPORT_ENQUEUE_TIMEOUT_SECONDS", "0.05")
        from app.config import get_ingestion_settings

        get_ingestion_settings.cache_clear()
        try:
            small_queue = ReportQueue(max_batches=1)
            client = TestClient(create_app(queue=small_queue, decryptor=_EchoDecryptor()))

            assert client.post("/reports", content=json.dumps([SCENARIO])).status_code == 200
            response = client.post("/reports", content=json.dumps([SCENARIO]))
        finally:
            get_ingestion_settings.cache_clear()

        assert response.status_code == 503
        assert "Retry-After" in response.headers
        assert small_queue.qsize() == 1

    def test_oversized_body_returns_413(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPORT_MAX_BODY_BYTES", "64")
        from app.config import get_ingestion_settings

        get_ingestion_settings.cache_clear()
        try:
            small_queue = ReportQueue(max_batches=4)
            client = TestClient(create_app(queue=small_queue, decryptor=_EchoDecryptor()))
            response = client.post("/reports", content=json.dumps([SCENARIO] * 3))
        finally:
            get_ingestion_settings.cache_clear()

        assert response.status_code == 413
        assert small_queue.empty()


# ---------------------------------------------------------------------------
# POST /reports/encrypted
# ---------------------------------------------------------------------------


class TestEncryptedEndpoint:
    def test_decrypted_report_is_enqueued(self, client: TestClient, queue: ReportQueue) -> None:
        response = client.post("/reports/encrypted", content=b"\x00\x01secret")

        assert response.status_code == 200
        assert response.content == b""
        ((report,),) = _drain(queue)
        assert report == DecryptedReport(plaintext=b"terces\x01\x00")

    def test_empty_envelope_returns_400(self, client: TestClient, queue: ReportQueue) -> None:
        response = client.post("/reports/encrypted", content=b"")

        assert response.status_code == 400
        assert "empty" in response.json()["detail"]
        assert queue.empty()

    def test_decryption_failure_returns_400(self, client: TestClient, queue: ReportQueue) -> None:
        response = client.post("/reports/encrypted", content=b"garbage")

        assert response.status_code == 400
        assert queue.empty()

    def test_unconfigured_decryption_returns_503(self, queue: ReportQueue) -> None:
        client = TestClient(create_app(queue=queue, decryptor=UnconfiguredDecryptor()))

        response = client.post("/reports/encrypted", content=b"\x01")

        assert response.status_code == 503
        assert queue.empty()


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


def test_health_reports_queue_and_counters(client: TestClient, queue: ReportQueue) -> None:
    client.post("/reports", content=json.dumps([SCENARIO, SCENARIO]))
    client.post("/reports", content="[")

    payload = client.get("/health").json()

    assert payload["status"] == "ok"
    assert payload["queue_depth"] == 1
    assert payload["queue_capacity"] == 8
    assert payload["ingestion"]["batches_enqueued"] == 1
    assert payload["ingestion"]["reports_enqueued"] == 2
    assert payload["ingestion"]["rejected_requests"] == 1
