from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

from .analysis import AnalysisSession, format_report
from .config import EfergyConfig
from .demod import Demodulator
from .frames import FrameValidator
from .output import ConsoleSink, ReadingLog
from .samples import read_samples

logger = logging.getLogger(__name__)

BANNER = "Efergy E2 Classic decode"


class DecoderSession:
    """Wires a sample source through the demodulator into the configured sinks."""

    def __init__(
        self,
        config: EfergyConfig,
        console: Optional[TextIO] = None,
        validator: Optional[FrameValidator] = None,
    ):
        self.config = config
        self.demodulator = Demodulator(config.decoder, validator)
        self.demodulator.register_callback(ConsoleSink(console))
        self.log: Optional[ReadingLog] = None
        if config.output.log_path is not None:
            self.log = ReadingLog(
                config.output.log_path,
                line_ending=config.output.line_terminator,
                flush_every=config.output.flush_every,
            )
            # fails here, before any sample is read, when the log cannot be opened
            self.log.open()
            self.demodulator.register_callback(self.log)

    def run(self, handle: Any) -> int:
        """Decode until the source is exhausted; return the number of readings."""
        count = 0
        try:
            for _ in self.demodulator.run(read_samples(handle)):
                count += 1
        except KeyboardInterrupt:
            logger.info("Stopping decoder (Ctrl+C)")
        finally:
            self.close()
        return count

    def close(self) -> None:
        if self.log is not None:
            self.log.close()
        stats = self.demodulator.stats()
        logger.info(
            "Final stats: samples=%d frames=%d readings=%d checksum_errors=%d stale_frames=%d "
            "recalibrations=%d center=%d",
            stats["samples"],
            stats["frames"],
            stats["readings"],
            stats["checksum_errors"],
            stats["stale_frames"],
            stats["recalibrations"],
            stats["center"],
        )


def run_analysis(config: EfergyConfig, handle: Any, out: Optional[TextIO] = None) -> int:
    """Print one report per captured frame; return the number of reports."""
    stream = out or sys.stdout
    verbosity = config.analysis.verbosity
    session = AnalysisSession(config)
    count = 0
    try:
        for report in session.run(read_samples(handle)):
            stream.write(format_report(report, verbosity) + "\n")
            stream.flush()
            if not report.overflowed:
                logger.info("Stream ended during capture; analyzed %d samples", report.sample_count)
            count += 1
    except KeyboardInterrupt:
        logger.info("Stopping analysis (Ctrl+C)")
    logger.info("Analyzed %d frame(s), final wave center %d", count, session.center)
    return count
