"""Real-time analysis pipeline: segment, dispatch, reconcile, publish.

Everything here runs on one asyncio event loop. The only suspension point is
the analyzer call; sequence assignment, in-flight bookkeeping and the
staleness check are synchronous, so no two response handlers interleave.
The capture callback runs on the audio thread and only touches the segmenter.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Set

from pitchcoach.analyzers.base_analyzer import BaseAnalyzer
from pitchcoach.config import Config
from pitchcoach.errors import AudioSourceError
from pitchcoach.models import AnalysisRequest, AnalysisResult, AudioSegment, PitchView
from pitchcoach.pace import PaceTracker
from pitchcoach.segmenter import ChunkSegmenter, FrameCallback, monotonic_ms
from pitchcoach.state import SessionState
from pitchcoach.tips import TipSanitizer
from pitchcoach.transcript import append_transcript, tail_context, word_count

logger = logging.getLogger(__name__)


class AudioSource(Protocol):
    def start(self, on_frames: FrameCallback) -> None: ...

    def stop(self) -> None: ...


@dataclass
class PipelineStats:
    """Per-session counters for diagnostics."""

    segments_cut: int = 0
    skipped_small: int = 0
    skipped_silent: int = 0
    dropped_inflight: int = 0
    dispatched: int = 0
    displayed: int = 0
    stale: int = 0
    errors: int = 0
    discarded_after_stop: int = 0


class AnalysisPipeline:
    """
    Decoupled capture and analysis.

    The cycle loop never awaits the network: each segment is fired as its own
    task, at most `max_inflight` at a time (newest segment dropped when full),
    and results are applied only if their sequence is newer than anything
    already displayed.
    """

    def __init__(
        self,
        analyzer: BaseAnalyzer,
        state: Optional[SessionState] = None,
        *,
        sample_rate: Optional[int] = None,
        cycle_ms: Optional[int] = None,
        min_audio_samples: Optional[int] = None,
        silence_rms: Optional[float] = None,
        max_inflight: Optional[int] = None,
        pace_interval_ms: Optional[int] = None,
        context_max_chars: Optional[int] = None,
        tip_max_words: Optional[int] = None,
        tip_history_size: Optional[int] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.analyzer = analyzer
        self.state = state or SessionState()
        self.cycle_ms = cycle_ms or Config.CYCLE_MS
        self.min_audio_samples = min_audio_samples if min_audio_samples is not None else Config.MIN_AUDIO_SAMPLES
        self.silence_rms = silence_rms if silence_rms is not None else Config.SILENCE_RMS
        self.max_inflight = max_inflight or Config.MAX_INFLIGHT
        self.pace_interval_ms = pace_interval_ms or Config.PACE_INTERVAL_MS
        self.context_max_chars = context_max_chars if context_max_chars is not None else Config.CONTEXT_MAX_CHARS
        self._clock = clock

        self.pace = PaceTracker()
        self.sanitizer = TipSanitizer(
            max_words=tip_max_words or Config.TIP_MAX_WORDS,
            history_size=tip_history_size or Config.TIP_HISTORY_SIZE,
        )
        self.segmenter = ChunkSegmenter(sample_rate or Config.SAMPLE_RATE, clock=clock)
        self.stats = PipelineStats()

        self._active = False
        self._session_id = 0
        self._sequence = 0
        self._last_displayed_seq = 0
        self._outstanding: Set[AnalysisRequest] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._timers: List[asyncio.Task] = []
        self._source: Optional[AudioSource] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self._active

    @property
    def session_id(self) -> int:
        return self._session_id

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def last_displayed_seq(self) -> int:
        return self._last_displayed_seq

    @property
    def inflight(self) -> int:
        return len(self._outstanding)

    def snapshot(self) -> Dict[str, Any]:
        data = self.state.to_dict()
        data["pipeline"] = {
            "active": self._active,
            "sequence": self._sequence,
            "last_displayed_seq": self._last_displayed_seq,
            "inflight": self.inflight,
            "max_inflight": self.max_inflight,
            "stats": asdict(self.stats),
        }
        return data

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, source: AudioSource) -> bool:
        """Reset everything and begin capturing. Returns False if capture could not start."""
        if self._active:
            await self.stop()

        logger.info("[PIPELINE] ===== START ANALYSIS =====")
        self._session_id += 1
        self._sequence = 0
        self._last_displayed_seq = 0
        self._outstanding = set()
        self.stats = PipelineStats()
        self.pace.reset()
        self.sanitizer.reset()
        self.segmenter.reset()
        self.state.reset()

        try:
            source.start(self.segmenter.push)
        except AudioSourceError as e:
            logger.error(f"[PIPELINE] No audio input, aborting: {e}")
            self.state.error = str(e)
            self.state.touch()
            return False

        self._source = source
        self._active = True
        self.state.status = "analyzing"
        self.state.touch()

        loop = asyncio.get_running_loop()
        self._timers = [
            loop.create_task(self._cycle_loop(), name="pitchcoach-cycle"),
            loop.create_task(self._pace_loop(), name="pitchcoach-pace"),
        ]
        logger.info(
            f"[PIPELINE] capture started, session={self._session_id} "
            f"cycle={self.cycle_ms}ms max_inflight={self.max_inflight}"
        )
        return True

    async def stop(self) -> None:
        """Stop immediately; responses that arrive afterwards are ignored."""
        # Flip first so any handler running after this point is gated out.
        self._active = False
        logger.info(
            f"[PIPELINE] ===== STOP ANALYSIS ===== seq={self._sequence} "
            f"lastDisplayed={self._last_displayed_seq} inflight={self.inflight}"
        )

        # Everything below up to the first await runs without yielding, so a
        # start() scheduled meanwhile only ever sees a fully stopped pipeline.
        timers, self._timers = self._timers, []
        source, self._source = self._source, None
        for t in timers:
            t.cancel()
        if source is not None:
            source.stop()
        self.segmenter.reset()

        self.state.status = "idle"
        self.state.is_analyzing = False
        self.state.touch()

        if timers:
            await asyncio.gather(*timers, return_exceptions=True)

        # A new session may have started while the timers wound down; its
        # requests share the analyzer's client.
        if not self._active:
            await self.analyzer.close()

    def update_settings(self, mode: str, custom_instructions: str = "") -> None:
        self.analyzer.update_settings(mode, custom_instructions)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    async def _cycle_loop(self) -> None:
        interval = self.cycle_ms / 1000.0
        while self._active:
            await asyncio.sleep(interval)
            if not self._active:
                break
            try:
                self.on_cycle()
            except Exception as e:
                # Keep capturing even if one cycle misbehaves
                logger.exception(f"[PIPELINE] cycle error: {e}")

    async def _pace_loop(self) -> None:
        interval = self.pace_interval_ms / 1000.0
        while self._active:
            self.refresh_pace()
            await asyncio.sleep(interval)

    def refresh_pace(self) -> float:
        score = self.pace.update(self._clock())
        if abs(score - self.state.pace_score) > 1e-4:
            self.state.pace_score = score
            self.state.touch()
        return score

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def on_cycle(self) -> Optional[int]:
        """Cut the current segment and hand it on. Never blocks."""
        if not self._active:
            return None
        segment = self.segmenter.cut()
        self.stats.segments_cut += 1
        return self.on_segment_ready(segment)

    def on_segment_ready(self, segment: AudioSegment) -> Optional[int]:
        """Dispatch a segment if it is big enough and there is room. Returns its sequence."""
        if not self._active:
            return None

        logger.debug(
            f"[PIPELINE] harvest: {segment.sample_count} samples | inflight={self.inflight}/{self.max_inflight}"
        )

        if segment.sample_count < self.min_audio_samples:
            self.stats.skipped_small += 1
            logger.debug(f"[PIPELINE] SKIP: audio too small ({segment.sample_count} < {self.min_audio_samples})")
            return None

        if self.silence_rms > 0 and segment.rms < self.silence_rms:
            self.stats.skipped_silent += 1
            logger.debug(f"[PIPELINE] SKIP: near-silence (rms={segment.rms:.4f})")
            return None

        if self.inflight >= self.max_inflight:
            # Drop the newest; queuing would only produce another stale result.
            self.stats.dropped_inflight += 1
            logger.warning(f"[PIPELINE] SKIP: inflight cap reached ({self.inflight}/{self.max_inflight})")
            return None

        self._sequence += 1
        request = AnalysisRequest(
            sequence=self._sequence,
            session_id=self._session_id,
            payload=segment.to_wav(),
            context=tail_context(self.state.transcript, self.context_max_chars),
            sample_count=segment.sample_count,
            fired_at=self._clock(),
        )
        self._outstanding.add(request)
        self.stats.dispatched += 1

        self.state.is_analyzing = True
        self.state.touch()

        logger.info(
            f"[PIPELINE] FIRE seq=#{request.sequence}: {request.sample_count} samples "
            f"({len(request.payload)} bytes), inflight={self.inflight}"
        )

        task = asyncio.get_running_loop().create_task(self._run_request(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return request.sequence

    async def _run_request(self, request: AnalysisRequest) -> None:
        try:
            result = await self.analyzer.analyze_audio(request.payload, request.context)
        except asyncio.CancelledError:
            self._outstanding.discard(request)
            raise
        except Exception as e:
            self._on_rejected(request, e)
            return
        try:
            self._on_resolved(request, result)
        except Exception as e:
            # e.g. an analyzer handing back something other than an AnalysisResult
            logger.exception(f"[PIPELINE] seq=#{request.sequence} could not apply result: {e}")
            self._on_rejected(request, e)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def _is_current(self, request: AnalysisRequest) -> bool:
        return self._active and request.session_id == self._session_id

    def _roundtrip_ms(self, request: AnalysisRequest) -> float:
        return self._clock() - request.fired_at

    def _on_resolved(self, request: AnalysisRequest, result: AnalysisResult) -> None:
        self._outstanding.discard(request)
        seq = request.sequence
        rt = self._roundtrip_ms(request)

        if not self._is_current(request):
            self.stats.discarded_after_stop += 1
            logger.info(f"[PIPELINE] seq=#{seq} ARRIVED in {rt:.0f}ms but session stopped, discarding")
            return

        state = self.state

        if result.error:
            self.stats.errors += 1
            logger.error(f"[PIPELINE] seq=#{seq} ERROR in {rt:.0f}ms: {result.error}")
            state.error = result.error
            state.is_analyzing = self.inflight > 0
            state.touch()
            return

        if seq <= self._last_displayed_seq:
            self.stats.stale += 1
            logger.info(f"[PIPELINE] seq=#{seq} STALE in {rt:.0f}ms (displayed #{self._last_displayed_seq}), discarding")
            if state.is_analyzing != (self.inflight > 0):
                state.is_analyzing = self.inflight > 0
                state.touch()
            return

        self._last_displayed_seq = seq

        previous = state.transcript
        updated = append_transcript(previous, result.transcript)
        added = word_count(updated) - word_count(previous)
        if added > 0:
            self.pace.add_words(added, self._clock())
        state.transcript = updated

        tips = []
        if result.has_coaching:
            tips = self.sanitizer.sanitize(result.tips)
            state.tip_history.extend(tips)
            state.pitch_data = PitchView(
                sequence=seq,
                tips=tips,
                signals=list(result.signals),
                coach_note=result.coach_note,
            )

        state.cycle_count += 1
        state.error = None
        state.is_analyzing = self.inflight > 0
        state.touch()
        self.stats.displayed += 1

        tip_texts = ", ".join(f'"{t.text}"' for t in tips)
        logger.info(f"[PIPELINE] seq=#{seq} DISPLAY in {rt:.0f}ms: +{added} words, tips=[{tip_texts}]")

    def _on_rejected(self, request: AnalysisRequest, exc: Exception) -> None:
        self._outstanding.discard(request)
        seq = request.sequence

        if not self._is_current(request):
            self.stats.discarded_after_stop += 1
            logger.info(f"[PIPELINE] seq=#{seq} failed after session stopped, discarding: {exc}")
            return

        message = str(exc) or "Analysis cycle failed"
        self.stats.errors += 1
        logger.error(f"[PIPELINE] seq=#{seq} EXCEPTION: {message}")
        self.state.error = message
        self.state.is_analyzing = self.inflight > 0
        self.state.touch()
