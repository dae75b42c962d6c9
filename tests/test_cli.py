"""Tests for the command line front end and file pipeline."""

import argparse
import csv
import json

import numpy as np
import pytest
from scipy.io import wavfile

from beatscope.cli import _parse_assignment, build_options, build_parser, main
from beatscope.core.analyzer import CancelToken
from beatscope.pipeline import AudioPipeline

from conftest import TEST_SR, make_click_train


@pytest.fixture
def click_wav(tmp_path):
    path = tmp_path / "clicks.wav"
    wavfile.write(path, TEST_SR, make_click_train(duration=3.0, offset=0.25))
    return path


def test_parse_assignment():
    assert _parse_assignment("Kick=0.7") == ("kick", 0.7)
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_assignment("kick")
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_assignment("cowbell=0.5")
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_assignment("kick=loud")


def test_build_options_from_args():
    args = build_parser().parse_args([
        "song.wav",
        "-c", "kick,vocal",
        "-s", "kick=0.9",
        "--min-interval", "vocal=0.2",
    ])
    options = build_options(args)
    assert options.enabled_channels == ["kick", "vocal"]
    assert options["kick"].sensitivity == 0.9
    assert options["vocal"].min_interval == 0.2


def test_build_options_defaults():
    options = build_options(build_parser().parse_args(["song.wav"]))
    assert options.enabled_channels == ["kick", "snare", "hihat", "bass", "melody"]


def test_main_writes_json_and_csv(click_wav, tmp_path, capsys):
    out = tmp_path / "out.json"
    csv_path = tmp_path / "out.csv"
    code = main([str(click_wav), "-o", str(out), "--csv", str(csv_path), "-q"])
    assert code == 0

    with open(out) as f:
        manifest = json.load(f)
    assert manifest["metadata"]["sample_rate"] == TEST_SR
    assert len(manifest["channels"]["kick"]) >= 4
    assert 60.0 <= manifest["metadata"]["bpm"] < 200.0

    with open(csv_path, newline="") as f:
        rows = list(csv.reader(f))
    assert len(rows) - 1 == manifest["summary"]["total_events"]

    printed = capsys.readouterr().out
    assert "BPM" in printed
    assert "kick" in printed


def test_main_default_output_path(click_wav):
    assert main([str(click_wav), "-q", "-c", "kick"]) == 0
    assert (click_wav.parent / "clicks_markers.json").exists()


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.wav"), "-q"]) == 1
    assert "not found" in capsys.readouterr().err


def test_main_rejects_unknown_channel_list(click_wav, capsys):
    assert main([str(click_wav), "-q", "-c", "kick,cowbell"]) == 2
    assert "cowbell" in capsys.readouterr().err


def test_pipeline_process_returns_summary(click_wav):
    processed = AudioPipeline().process(click_wav)
    assert set(processed) == {"result", "manifest", "bpm", "duration", "summary"}
    assert processed["duration"] == pytest.approx(3.0)
    assert processed["summary"] == processed["result"].summary()
    assert "vocal" not in processed["summary"]


def test_pipeline_cancelled(click_wav, tmp_path):
    token = CancelToken()
    token.cancel()
    out = tmp_path / "never.json"
    assert AudioPipeline().process(click_wav, output_path=out, cancel_token=token) is None
    assert not out.exists()


def test_pipeline_resamples(click_wav):
    result = AudioPipeline(sr=22050).analyze_file(click_wav)
    assert result.sample_rate == 22050
    assert np.isclose(result.duration, 3.0)
