from __future__ import annotations
import asyncio

import httpx
import pytest

from deepcheck.core.errors import AnalysisError
from deepcheck.services.analysis_client import AnalysisClient
from deepcheck.workflow.runner import run_analysis
from deepcheck.workflow.session import UploadSession

from fakes import FAKE_RESPONSE, CountingRegistry, detector, make_blob


class TracingSession(UploadSession):
    """Records every phase the session passes through."""

    def __setattr__(self, name, value):
        if name == "phase":
            self.__dict__.setdefault("trace", []).append(value.status)
        super().__setattr__(name, value)


def _session() -> TracingSession:
    s = TracingSession("ses_trace", registry=CountingRegistry())
    s.select(make_blob())
    s.trace.clear()
    return s


def test_success_walks_every_phase_in_order():
    s = _session()
    asyncio.run(run_analysis(s, detector()))
    assert s.trace == ["uploading", "analyzing", "complete"]
    view = s.view()
    assert view["verdict_text"] == "This video is likely a deepfake."
    assert view["fake_percentage_text"] == "87.50%"
    assert view["analysis_progress"] == 100.0


def test_upload_is_multipart_video_field():
    calls = []
    s = _session()
    asyncio.run(run_analysis(s, detector(calls=calls)))
    (request,) = calls
    assert request.method == "POST"
    assert str(request.url) == "https://detector.test/analyze"
    assert b'name="video"' in request.content
    assert b'filename="clip.webm"' in request.content


@pytest.mark.parametrize("status", [400, 404, 500, 503])
def test_non_2xx_is_an_error_without_result(status):
    s = _session()
    asyncio.run(run_analysis(s, detector(status=status)))
    assert s.trace == ["uploading", "error"]
    view = s.view()
    assert view["error"] == f"HTTP error! status: {status}"
    assert view["fake_percentage"] is None
    assert view["is_likely_deepfake"] is None
    assert view["top_frames"] == []


@pytest.mark.parametrize("body", [
    b"<html>oops</html>",
    b"[1, 2]",
    b"{}",
    b'{"fake_percentage": "high"}',
    b'{"fake_percentage": 50, "top_frames": 5}',
    b'{"is_likely_deepfake": true, "top_frames": true}',
    b'{"fake_percentage": 50, "top_frames": [{"prediction": "fake"}]}',
])
def test_malformed_body_is_an_error(body):
    s = _session()
    asyncio.run(run_analysis(s, detector(body=body)))
    assert s.trace == ["uploading", "analyzing", "error"]
    assert s.view()["error"] == "Malformed response from analysis service"
    assert s.result is None


def test_network_failure_is_an_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    client = AnalysisClient(url="https://detector.test/analyze", transport=httpx.MockTransport(handler))
    s = _session()
    asyncio.run(run_analysis(s, client))
    assert s.status == "error"
    assert "connection refused" in s.view()["error"]


def test_boolean_only_schema_degrades_gracefully():
    s = _session()
    asyncio.run(run_analysis(s, detector(body={"is_likely_deepfake": False})))
    view = s.view()
    assert view["status"] == "complete"
    assert view["verdict_text"] == "This video is likely genuine."
    assert view["fake_percentage_text"] == "N/A"
    assert view["top_frames"] == []


def test_out_of_range_values_are_kept_verbatim():
    s = _session()
    asyncio.run(run_analysis(s, detector(body={"fake_percentage": 150, "is_likely_deepfake": True})))
    view = s.view()
    assert view["fake_percentage"] == 150
    assert view["fake_percentage_text"] == "150.00%"
    assert view["fake_percentage_bar"] == 100.0


def test_new_selection_abandons_in_flight_request():
    s = _session()

    def handler(request):
        s.select(make_blob("replacement.webm"))
        return httpx.Response(200, json=FAKE_RESPONSE)

    client = AnalysisClient(url="https://detector.test/analyze", transport=httpx.MockTransport(handler))
    asyncio.run(run_analysis(s, client))
    assert s.status == "idle"
    assert s.media.filename == "replacement.webm"
    assert s.result is None


def test_client_raises_analysis_error_directly():
    with pytest.raises(AnalysisError, match="status: 502"):
        asyncio.run(detector(status=502).analyze(make_blob()))
