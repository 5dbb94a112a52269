from __future__ import annotations
import asyncio

from deepcheck.api import uploads
from deepcheck.api.capture import get_recorder_factory
from deepcheck.api.reports import get_model_report_generator
from deepcheck.core.errors import ReportError
from deepcheck.main import app
from deepcheck.services.analysis_client import get_analysis_client
from deepcheck.services.report_service import ReportGenerator

from fakes import WEBM_BYTES, FakeCapture, FakeClock, detector, make_recorder


def _new_session(client) -> str:
    resp = client.post("/sessions")
    assert resp.status_code == 201
    return resp.json()["session_id"]


def _upload(client, session_id, data, name="clip.webm", content_type="video/webm"):
    return client.post(f"/sessions/{session_id}/video", files={"video": (name, data, content_type)})


def test_health(app_client):
    body = app_client.get("/health").json()
    assert body["status"] == "ok"
    assert body["services"]["report"] == "stub"


def test_full_upload_analyze_report_flow(app_client, webm_bytes):
    app.dependency_overrides[get_analysis_client] = lambda: detector()
    sid = _new_session(app_client)

    selected = _upload(app_client, sid, webm_bytes).json()
    assert selected["status"] == "idle"
    assert selected["file"]["name"] == "clip.webm"
    preview = app_client.get(selected["preview_url"])
    assert preview.status_code == 200
    assert preview.content == webm_bytes

    done = app_client.post(f"/sessions/{sid}/analyze").json()
    assert done["status"] == "complete"
    assert done["verdict_text"] == "This video is likely a deepfake."
    assert done["fake_percentage_text"] == "87.50%"

    reported = app_client.post(f"/sessions/{sid}/report").json()
    assert reported["report"]
    assert reported["report_error"] is None

    txt = app_client.get(f"/sessions/{sid}/report.txt")
    assert txt.status_code == 200
    assert "deepfake-analysis-report.txt" in txt.headers["content-disposition"]
    assert "Fake Percentage: 87.50%" in txt.text

    pdf = app_client.get(f"/sessions/{sid}/report.pdf")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_report_before_complete_is_rejected(app_client, webm_bytes):
    sid = _new_session(app_client)
    assert app_client.post(f"/sessions/{sid}/report").status_code == 409
    _upload(app_client, sid, webm_bytes)
    assert app_client.post(f"/sessions/{sid}/report").status_code == 409
    assert app_client.get(f"/sessions/{sid}/report.pdf").status_code == 409


def test_analyze_without_video_is_rejected(app_client):
    sid = _new_session(app_client)
    assert app_client.post(f"/sessions/{sid}/analyze").status_code == 409


def test_detector_failure_reaches_error(app_client, webm_bytes):
    app.dependency_overrides[get_analysis_client] = lambda: detector(status=502)
    sid = _new_session(app_client)
    _upload(app_client, sid, webm_bytes)
    body = app_client.post(f"/sessions/{sid}/analyze").json()
    assert body["status"] == "error"
    assert body["error"] == "HTTP error! status: 502"
    assert body["fake_percentage"] is None
    assert body["verdict_text"] is None


def test_reselect_resets_and_revokes_preview(app_client, webm_bytes):
    app.dependency_overrides[get_analysis_client] = lambda: detector()
    sid = _new_session(app_client)
    first = _upload(app_client, sid, webm_bytes).json()["preview_url"]
    app_client.post(f"/sessions/{sid}/analyze")

    second = _upload(app_client, sid, webm_bytes, name="other.webm").json()
    assert second["status"] == "idle"
    assert second["fake_percentage"] is None
    assert second["report"] is None
    assert app_client.get(first).status_code == 404
    assert app_client.get(second["preview_url"]).status_code == 200


def test_non_video_upload_rejected(app_client):
    sid = _new_session(app_client)
    resp = _upload(app_client, sid, b"hello", name="notes.txt", content_type="text/plain")
    assert resp.status_code == 415
    assert app_client.get(f"/sessions/{sid}").json()["file"] is None


def test_oversized_upload_rejected(app_client, webm_bytes, monkeypatch):
    monkeypatch.setattr(uploads.settings, "MAX_UPLOAD_BYTES", len(webm_bytes) - 1)
    sid = _new_session(app_client)
    assert _upload(app_client, sid, webm_bytes).status_code == 413
    assert app_client.get(f"/sessions/{sid}").json()["file"] is None


def test_upload_read_stops_past_the_limit(monkeypatch):
    class Upload:
        filename = "clip.webm"
        content_type = "video/webm"

        def __init__(self):
            self.sizes = []

        async def read(self, size=-1):
            self.sizes.append(size)
            return WEBM_BYTES

    monkeypatch.setattr(uploads.settings, "MAX_UPLOAD_BYTES", 1000)
    upload = Upload()
    blob = asyncio.run(uploads.read_video_upload(upload))
    assert upload.sizes == [1001]
    assert blob.data == WEBM_BYTES


def test_delete_session_revokes_preview(app_client, webm_bytes):
    sid = _new_session(app_client)
    url = _upload(app_client, sid, webm_bytes).json()["preview_url"]
    assert app_client.delete(f"/sessions/{sid}").status_code == 204
    assert app_client.get(url).status_code == 404
    assert app_client.get(f"/sessions/{sid}").status_code == 404


def test_unknown_session_404(app_client):
    assert app_client.get("/sessions/ses_missing").status_code == 404


def test_generate_report_endpoint_stub(app_client):
    body = {"fakePercentage": 12.0, "isLikelyDeepfake": False,
            "topFrames": [{"frame_number": 3, "prediction": "real", "confidence": 0.8}]}
    resp = app_client.post("/api/generate-report", json=body)
    assert resp.status_code == 200
    assert "likely genuine" in resp.json()["report"]


def test_generate_report_endpoint_failure(app_client):
    class Failing(ReportGenerator):
        async def generate(self, req):
            raise ReportError("upstream down")

    app.dependency_overrides[get_model_report_generator] = lambda: Failing()
    resp = app_client.post("/api/generate-report", json={"fakePercentage": 1, "isLikelyDeepfake": False})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Error generating report"}


def test_recording_feeds_session(app_client):
    clock = FakeClock()
    cap = FakeCapture(clock=clock)
    app.dependency_overrides[get_recorder_factory] = lambda: (lambda: make_recorder(cap, clock))
    sid = _new_session(app_client)

    started = app_client.post(f"/sessions/{sid}/recording")
    assert started.status_code == 200

    stopped = app_client.post(f"/sessions/{sid}/recording/stop").json()
    assert stopped["recording"]["recording_complete"] is True
    assert stopped["owner"]["file"]["name"] == "recorded_video.webm"
    assert stopped["owner"]["status"] == "idle"
    assert cap.release_calls == 1

    again = app_client.delete(f"/sessions/{sid}/recording").json()
    assert again["recording"]["state"] == "ready"


def test_camera_denied_returns_503(app_client):
    clock = FakeClock()
    app.dependency_overrides[get_recorder_factory] = (
        lambda: (lambda: make_recorder(FakeCapture(opened=False), clock))
    )
    sid = _new_session(app_client)
    resp = app_client.post(f"/sessions/{sid}/recording")
    assert resp.status_code == 503
    assert app_client.get(f"/sessions/{sid}").json()["file"] is None
