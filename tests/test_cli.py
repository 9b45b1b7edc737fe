import json

import pytest

pytest.importorskip("rich")

from rich.console import Console  # noqa: E402

import loudcheck  # noqa: E402


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    # keep table rows on one line regardless of the terminal
    monkeypatch.setattr(loudcheck, "console", Console(width=200))


@pytest.fixture
def fake_output(monkeypatch, backend_factory):
    """Route the CLI's transport to a fake backend."""
    def install(**kwargs):
        backend = backend_factory(**kwargs)
        monkeypatch.setattr("loudchecklib.transport.SoundDeviceBackend",
                            lambda device=None: backend)
        return backend
    return install


def test_analyze_and_write_reports(wav_file, tmp_path, capsys):
    json_path = tmp_path / "out.json"
    report_path = tmp_path / "out.txt"
    rc = loudcheck.main([wav_file(), "--json", str(json_path),
                         "--report", str(report_path), "--series"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "Spotify" in out
    assert "Tidal (HiFi)" in out

    report = json.loads(json_path.read_text(encoding="utf-8"))
    assert report["track"]["filename"] == "tone.wav"
    assert len(report["series"]["loudness"]) == 10
    assert "LoudCheck Report" in report_path.read_text(encoding="utf-8")


def test_policy_and_formula_flags(wav_file, tmp_path):
    json_path = tmp_path / "out.json"
    rc = loudcheck.main([wav_file(), "--formula", "plain", "--policy", "loudness_only",
                         "--json", str(json_path)])
    assert rc == 0
    report = json.loads(json_path.read_text(encoding="utf-8"))
    assert report["settings"] == {
        "loudness_formula": "plain",
        "normalization_policy": "loudness_only",
        "window_samples": 4410,
    }
    assert not any(p["limited"] for p in report["platforms"])


def test_missing_file(tmp_path, capsys):
    rc = loudcheck.main([str(tmp_path / "missing.wav")])
    assert rc == 1
    assert "Error" in capsys.readouterr().out


def test_bad_preset(wav_file, tmp_path):
    preset = tmp_path / "bad.json"
    preset.write_text('{"gain_smoothing_ms": -5}', encoding="utf-8")
    assert loudcheck.main([wav_file(), "--preset", str(preset)]) == 2


def test_save_and_reuse_preset(wav_file, tmp_path):
    preset = tmp_path / "mine.json"
    assert loudcheck.main([wav_file(), "--policy", "loudness_only",
                           "--save-preset", str(preset)]) == 0
    saved = json.loads(preset.read_text(encoding="utf-8"))
    assert saved["normalization_policy"] == "loudness_only"

    json_path = tmp_path / "out.json"
    assert loudcheck.main([wav_file(), "--preset", str(preset),
                           "--json", str(json_path)]) == 0
    report = json.loads(json_path.read_text(encoding="utf-8"))
    assert report["settings"]["normalization_policy"] == "loudness_only"


def test_play_until_finished(wav_file, fake_output, capsys):
    backend = fake_output(autoplay=True)
    rc = loudcheck.main([wav_file(), "--play", "spotify"])
    assert rc == 0
    assert "Playing Spotify" in capsys.readouterr().out
    assert backend.stream.closed


def test_play_without_output_device(wav_file, fake_output, capsys):
    fake_output(fail_open=True)
    rc = loudcheck.main([wav_file(), "--play", "original"])
    assert rc == 3
    assert "Playback error" in capsys.readouterr().out


def test_unknown_platform_is_rejected(wav_file):
    with pytest.raises(SystemExit):
        loudcheck.main([wav_file(), "--play", "napster"])
