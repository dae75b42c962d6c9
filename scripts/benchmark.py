"""
Beatscope analysis benchmark + FFT parity validation.

Usage:
    python scripts/benchmark.py [--quick]

Modes:
    default  : 60 s of synthetic audio, 2 warm-up + 5 timed runs per stage
    --quick  : 10 s of synthetic audio, 1 warm-up + 3 timed runs (CI-friendly)

Output: timing table + parity report printed to stdout.

Parity check: compares the radix-2 transform against numpy.fft.rfft on
the same windowed frames.  Magnitudes must agree to within 1e-6 relative
to the frame's peak.
"""

import argparse
import os
import sys
import time
from typing import List

import numpy as np

# Make sure the installed package is on the path when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from beatscope.core.analyzer import BeatAnalyzer
from beatscope.core.bands import compute_band_flux, extract_band_energies
from beatscope.core.decomposer import SampleBuffer
from beatscope.core.options import AnalysisOptions
from beatscope.core.spectral import SpectralEngine, count_frames

_SEP = "─" * 72
SR = 44100


def _hdr(title: str) -> None:
    print(f"\n{_SEP}")
    print(f"  {title}")
    print(_SEP)


def _timeit(fn, *args, warmup: int = 2, runs: int = 5, **kwargs) -> List[float]:
    """Run fn(*args, **kwargs), discard warmup iterations, return timed samples."""
    for _ in range(warmup):
        fn(*args, **kwargs)
    times = []
    for _ in range(runs):
        t0 = time.perf_counter()
        fn(*args, **kwargs)
        times.append(time.perf_counter() - t0)
    return times


def _stats(times: List[float]) -> str:
    arr = np.array(times)
    return f"mean={arr.mean()*1000:.1f} ms  min={arr.min()*1000:.1f} ms  max={arr.max()*1000:.1f} ms"


def _synthetic_track(seconds: float) -> np.ndarray:
    """Kick-like pulses at 120 BPM over a tone and some noise."""
    rng = np.random.RandomState(0)
    t = np.arange(int(seconds * SR)) / SR
    y = 0.2 * np.sin(2 * np.pi * 220.0 * t) + 0.02 * rng.randn(len(t))
    for start in range(0, len(t), SR // 2):
        n = min(2048, len(t) - start)
        decay = np.exp(-np.arange(n) / 400.0)
        y[start:start + n] += 0.8 * decay * np.sin(2 * np.pi * 60.0 * np.arange(n) / SR)
    return y.astype(np.float32)


# ---------------------------------------------------------------------------
# Parity helpers
# ---------------------------------------------------------------------------

def _parity_report(engine: SpectralEngine, mono: np.ndarray, n_frames: int) -> dict:
    """Compare radix-2 magnitudes with numpy's rfft on the first frames."""
    frames = engine._frame_block(mono.astype(np.float64), 0, n_frames)
    ours = engine.magnitudes(frames)
    ref = np.abs(np.fft.rfft(frames, axis=1))[:, : engine.fft_size // 2]
    peak = np.maximum(ref.max(axis=1, keepdims=True), 1e-12)
    rel = np.abs(ours - ref) / peak
    return {
        "max_rel": float(rel.max()),
        "p99_rel": float(np.percentile(rel, 99)),
        "peak_bins_match": bool(np.all(ours.argmax(axis=1) == ref.argmax(axis=1))),
    }


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Beatscope analysis benchmark")
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Use 10 s of audio instead of 60 s for fast CI runs",
    )
    args = parser.parse_args()

    if args.quick:
        seconds = 10.0
        WARMUP, RUNS = 1, 3
        label = "10 s (quick mode)"
    else:
        seconds = 60.0
        WARMUP, RUNS = 2, 5
        label = "60 s (full mode)"

    mono = _synthetic_track(seconds)
    buffer = SampleBuffer.mono(mono, SR)
    engine = SpectralEngine()
    print(f"\nBeatscope Analysis Benchmark  |  {label}")
    print(f"Frames: {count_frames(len(mono))}  (fft={engine.fft_size}, hop={engine.hop_length})")

    results = {}

    _hdr("1. spectrogram (radix-2)")
    t = _timeit(engine.compute, mono, SR, warmup=WARMUP, runs=RUNS)
    results["spectrogram"] = t
    print(f"  {_stats(t)}")

    _hdr("2. band energies + flux")
    spec = engine.compute(mono, SR)
    t = _timeit(lambda: (extract_band_energies(spec), compute_band_flux(spec)),
                warmup=WARMUP, runs=RUNS)
    results["bands"] = t
    print(f"  {_stats(t)}")

    _hdr("3. full analysis (all channels)")
    analyzer = BeatAnalyzer()
    options = AnalysisOptions().with_channel("vocal", enabled=True)
    t = _timeit(analyzer.analyze, buffer, options, warmup=WARMUP, runs=RUNS)
    results["analyze"] = t
    print(f"  {_stats(t)}")
    result = analyzer.analyze(buffer, options)
    print(f"  bpm={result.bpm}  events={result.summary()}")

    # ------------------------------------------------------------------
    # Parity validation
    # ------------------------------------------------------------------
    _hdr("Parity validation (radix-2 vs numpy.fft.rfft, first 200 frames)")
    r = _parity_report(engine, mono, min(200, count_frames(len(mono))))
    REL_MAX = 1e-6
    ok = r["max_rel"] <= REL_MAX and r["peak_bins_match"]
    print(f"  max_rel={r['max_rel']:.2e}  p99_rel={r['p99_rel']:.2e}"
          f"  peak_bins_match={r['peak_bins_match']}  [{'PASS' if ok else 'FAIL'}]")
    if not ok:
        print("\n  !! PARITY FAILURE: radix-2 transform disagrees with numpy !!")
        sys.exit(1)

    # ------------------------------------------------------------------
    # Summary table
    # ------------------------------------------------------------------
    _hdr("Summary")
    name_w = max(len(name) for name in results) + 2
    print(f"  {'Stage':<{name_w}} Time (ms, mean)")
    print(f"  {'-'*name_w} ---------------")
    for name, times in results.items():
        print(f"  {name:<{name_w}} {np.mean(times)*1000:.1f}")

    print(f"\n{_SEP}\n")


if __name__ == "__main__":
    main()
