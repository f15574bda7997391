"""
Efergy energy monitor decoder for rtl_fm FSK sample streams.

The package exposes the streaming demodulator, frame validation, the analysis
mode used for receiver tuning, and small helpers around the readings log.
"""

from importlib.metadata import PackageNotFoundError, version

from .analysis import AnalysisReport, AnalysisSession, PreambleDetector, SampleRecorder, analyze_capture, format_report
from .config import AnalysisConfig, DecoderConfig, EfergyConfig, OutputConfig, PRESETS, load_config
from .demod import Demodulator, WaveCenter
from .frames import ChecksumError, FrameValidator, PowerReading, compute_watts, frame_checksum, signed_exponent
from .pulses import decode_pulse_counts, pulse_runs

try:  # pragma: no cover - fallback when package metadata missing
    __version__ = version("efergy-sdr")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AnalysisConfig",
    "DecoderConfig",
    "EfergyConfig",
    "OutputConfig",
    "PRESETS",
    "load_config",
    "Demodulator",
    "WaveCenter",
    "ChecksumError",
    "FrameValidator",
    "PowerReading",
    "compute_watts",
    "frame_checksum",
    "signed_exponent",
    "decode_pulse_counts",
    "pulse_runs",
    "AnalysisReport",
    "AnalysisSession",
    "PreambleDetector",
    "SampleRecorder",
    "analyze_capture",
    "format_report",
]
