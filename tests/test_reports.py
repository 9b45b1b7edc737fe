import json

import pytest

from loudchecklib.analyzer import analyze_track
from loudchecklib.config import default_config
from loudchecklib.models import AudioTrack
from loudchecklib.normalizer import PlatformNormalizer
from loudchecklib.reports import build_report, generate_report, render_report_text, save_json


@pytest.fixture
def report_parts(constant_track):
    analysis = analyze_track(constant_track)
    results = PlatformNormalizer().normalize_all(analysis.summary)
    return constant_track, analysis, results


def test_build_report(report_parts):
    track, analysis, results = report_parts
    report = build_report(track, analysis, results, default_config())
    assert report["track"]["filename"] == "test.wav"
    assert report["track"]["duration_sec"] == pytest.approx(1.0)
    assert report["settings"]["loudness_formula"] == "offset"
    assert report["summary"]["peak_db"] == pytest.approx(-6.0206, abs=1e-3)
    assert report["summary"]["loudness_rating"] == "problem"
    assert [p["id"] for p in report["platforms"]] == list(results)
    spotify = report["platforms"][0]
    assert spotify["gain_direction"] == "cut"
    assert spotify["limited"] is False
    assert "series" not in report


def test_series_included_on_request(report_parts):
    track, analysis, results = report_parts
    report = build_report(track, analysis, results, default_config(), include_series=True)
    assert len(report["series"]["loudness"]) == 10
    assert report["series"]["peak"][0] == [0.0, pytest.approx(0.5)]


def test_json_has_no_infinities(tmp_path, track_factory):
    track = track_factory(value=0.0)
    analysis = analyze_track(track)
    results = PlatformNormalizer().normalize_all(analysis.summary)
    path = tmp_path / "out" / "report.json"
    save_json(build_report(track, analysis, results, default_config()), str(path))
    loaded = json.loads(path.read_text(encoding="utf-8"))
    assert loaded["summary"]["loudness"] < -120


def test_text_report(tmp_path, report_parts):
    track, analysis, results = report_parts
    report = build_report(track, analysis, results, default_config())
    path = tmp_path / "report.txt"
    text = generate_report(report, str(path))
    assert path.read_text(encoding="utf-8") == text
    assert "Apple Music" in text
    assert "-16.0" in text
    assert text == render_report_text(report)


def test_text_report_lists_limited_platforms(track_factory):
    track = track_factory(value=0.05)  # quiet and flat: big boost, peak stays under the ceiling
    analysis = analyze_track(track)
    results = PlatformNormalizer().normalize_all(analysis.summary)
    report = build_report(track, analysis, results, default_config())
    assert not any(p["limited"] for p in report["platforms"])

    squashed = track_factory(value=0.05).data.copy()
    squashed[0, 0] = 0.9
    spiky = AudioTrack(samplerate=44100, data=squashed)
    analysis = analyze_track(spiky)
    results = PlatformNormalizer().normalize_all(analysis.summary)
    text = render_report_text(build_report(spiky, analysis, results, default_config()))
    assert "Likely limited" in text
    assert "Spotify" in text.split("Likely limited")[1]
