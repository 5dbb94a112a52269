from __future__ import annotations

import pytest

from deepcheck.core.errors import InvalidTransition
from deepcheck.core.schemas import AnalysisResult
from deepcheck.workflow.session import UploadSession

from fakes import FAKE_RESPONSE, CountingRegistry, make_blob


@pytest.fixture
def registry():
    return CountingRegistry()


@pytest.fixture
def session(registry):
    return UploadSession("ses_test", registry=registry)


def _complete(s: UploadSession) -> None:
    gen = s.begin_upload()
    s.acknowledge(gen)
    s.complete(gen, AnalysisResult.from_response(FAKE_RESPONSE))


def test_happy_path_order(session):
    session.select(make_blob())
    seen = [session.status]
    gen = session.begin_upload()
    seen.append(session.status)
    assert session.acknowledge(gen)
    seen.append(session.status)
    assert session.complete(gen, AnalysisResult.from_response(FAKE_RESPONSE))
    seen.append(session.status)
    assert seen == ["idle", "uploading", "analyzing", "complete"]


def test_upload_requires_selected_video(session):
    with pytest.raises(InvalidTransition):
        session.begin_upload()
    assert session.status == "idle"


def test_cannot_skip_analyzing(session):
    session.select(make_blob())
    gen = session.begin_upload()
    with pytest.raises(InvalidTransition):
        session.complete(gen, AnalysisResult.from_response(FAKE_RESPONSE))


def test_cannot_start_second_upload_while_in_flight(session):
    session.select(make_blob())
    session.begin_upload()
    with pytest.raises(InvalidTransition):
        session.begin_upload()


def test_error_only_from_in_flight(session):
    session.select(make_blob())
    with pytest.raises(InvalidTransition):
        session.fail(session.generation, "nope")
    gen = session.begin_upload()
    assert session.fail(gen, "HTTP error! status: 500")
    assert session.status == "error"
    assert session.view()["error"] == "HTTP error! status: 500"
    assert session.result is None


def test_reselect_from_complete_resets_everything(session):
    session.select(make_blob())
    _complete(session)
    gen, _ = session.begin_report()
    session.attach_report(gen, "narrative")
    assert session.report == "narrative"

    session.select(make_blob("second.webm"))
    view = session.view()
    assert view["status"] == "idle"
    assert view["fake_percentage"] is None
    assert view["is_likely_deepfake"] is None
    assert view["top_frames"] == []
    assert view["report"] is None
    assert view["report_error"] is None
    assert view["upload_progress"] == 0.0
    assert view["analysis_progress"] == 0.0
    assert view["file"]["name"] == "second.webm"


def test_reselect_from_error_returns_to_idle(session):
    session.select(make_blob())
    gen = session.begin_upload()
    session.fail(gen, "boom")
    session.select(make_blob("again.webm"))
    assert session.status == "idle"
    assert session.view()["error"] is None


def test_response_for_abandoned_request_is_dropped(session):
    session.select(make_blob())
    gen = session.begin_upload()
    session.select(make_blob("newer.webm"))
    assert not session.acknowledge(gen)
    assert not session.complete(gen, AnalysisResult.from_response(FAKE_RESPONSE))
    assert not session.fail(gen, "late failure")
    assert session.status == "idle"
    assert session.media.filename == "newer.webm"


def test_report_impossible_before_complete(session):
    with pytest.raises(InvalidTransition):
        session.begin_report()
    session.select(make_blob())
    gen = session.begin_upload()
    with pytest.raises(InvalidTransition):
        session.begin_report()
    session.acknowledge(gen)
    with pytest.raises(InvalidTransition):
        session.begin_report()


def test_one_report_in_flight(session):
    session.select(make_blob())
    _complete(session)
    session.begin_report()
    with pytest.raises(InvalidTransition):
        session.begin_report()


def test_report_failure_keeps_result(session):
    session.select(make_blob())
    _complete(session)
    gen, _ = session.begin_report()
    session.report_failed(gen, "Error generating report")
    view = session.view()
    assert view["status"] == "complete"
    assert view["fake_percentage"] == 87.5
    assert view["report_error"] == "Error generating report"
    assert view["report"] is None


def test_previews_revoked_once_per_superseded_blob(session, registry):
    session.select(make_blob("a.webm"))
    first = session.preview.token
    session.select(make_blob("b.webm"))
    second = session.preview.token
    session.select(make_blob("c.webm"))
    third = session.preview.token

    assert registry.revocations == {first: 1, second: 1}
    assert registry.get(first) is None
    assert registry.get(third) is not None

    session.close()
    session.close()
    assert registry.revocations == {first: 1, second: 1, third: 1}
    assert len(registry) == 0


def test_progress_updates_are_clamped_and_phase_scoped(session):
    session.select(make_blob())
    gen = session.begin_upload()
    assert session.update_progress(gen, upload=140)
    assert session.view()["upload_progress"] == 100.0
    assert not session.update_progress(gen, analysis=50)
    session.acknowledge(gen)
    assert session.update_progress(gen, analysis=-3)
    assert session.view()["analysis_progress"] == 0.0


def test_completed_view_formats_verdict(session):
    session.select(make_blob())
    _complete(session)
    view = session.view()
    assert view["verdict_text"] == "This video is likely a deepfake."
    assert view["fake_percentage_text"] == "87.50%"
    assert [f["frame_number"] for f in view["top_frames"]] == [12, 40]
