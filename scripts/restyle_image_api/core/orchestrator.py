"""Two-phase generation state machine: prompt synthesis, then image synthesis."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, Optional, TypeVar, Union

from .contracts import (
    AspectRatio,
    ConcreteRatio,
    GenerationParameters,
    HistoryEntry,
    ImageAsset,
    Mode,
    ProductParameters,
    RunPhase,
    RunState,
)
from .errors import ErrorKind, GenerationTimeout, MissingInput, RestyleError, RunError
from .history import HistoryStore
from .normalize import FitMode, normalize_asset
from .ratios import concretize
from .solver import normalize_mode, resolve_parameters
from .utils import now_ms
from restyle_image_api.providers.base import ImageSynthesizer, PromptSynthesizer


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 120.0


class Orchestrator:
    """Drives one run at a time against the remote collaborators.

    Every run gets a monotonically increasing id. Results of a run that has
    been superseded (by a new ``generate``/``regenerate`` or by ``reset``) are
    returned to their caller marked ``stale`` and never touch ``state`` or
    the history store. Public operations never raise; failures come back as
    a ``FAILED`` snapshot carrying a ``RunError``.
    """

    def __init__(
        self,
        prompt_synthesizer: PromptSynthesizer,
        image_synthesizer: ImageSynthesizer,
        history: Optional[HistoryStore] = None,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.prompt_synthesizer = prompt_synthesizer
        self.image_synthesizer = image_synthesizer
        self.history = history
        self.timeout = timeout
        self._clock = clock
        self._latest_run_id = 0
        self._last_timestamp = 0
        self._state = RunState()

    @property
    def state(self) -> RunState:
        return self._state

    def reset(self) -> RunState:
        """Abandon any in-flight run and return to Idle."""
        self._latest_run_id += 1
        self._state = RunState(run_id=self._latest_run_id)
        return self._state

    # Internal helpers ---------------------------------------------------------
    def _start(self, phase: RunPhase, **fields) -> RunState:
        self._latest_run_id += 1
        snapshot = RunState(run_id=self._latest_run_id, phase=phase, **fields)
        self._state = snapshot
        logger.debug("Run %d started in %s.", snapshot.run_id, phase.value)
        return snapshot

    def _is_current(self, snapshot: RunState) -> bool:
        return snapshot.run_id == self._latest_run_id

    def _commit(self, snapshot: RunState) -> RunState:
        if not self._is_current(snapshot):
            logger.debug("Discarding stale result of run %d (%s).", snapshot.run_id, snapshot.phase.value)
            return replace(snapshot, stale=True)
        self._state = snapshot
        logger.debug("Run %d -> %s.", snapshot.run_id, snapshot.phase.value)
        return snapshot

    def _fail(self, snapshot: RunState, exc: BaseException) -> RunState:
        error = RunError.from_exception(exc)
        logger.warning("Run %d failed (%s): %s", snapshot.run_id, error.kind.value, error.message)
        return self._commit(replace(snapshot, phase=RunPhase.FAILED, error=error))

    def _reject(self, message: str) -> RunState:
        error = RunError.from_exception(MissingInput(message))
        logger.warning("Rejected run request: %s", message)
        self._state = replace(self._state, error=error)
        return self._state

    async def _call(self, label: str, awaitable: Awaitable[T]) -> T:
        if self.timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise GenerationTimeout(f"{label} timed out after {self.timeout:g}s.") from exc

    def _next_timestamp(self) -> int:
        stamp = max(int(self._clock()), self._last_timestamp + 1)
        self._last_timestamp = stamp
        return stamp

    # Public operations --------------------------------------------------------
    async def generate(
        self,
        source: Optional[ImageAsset],
        parameters: GenerationParameters,
    ) -> RunState:
        """Synthesize a prompt for ``source`` and then render it."""
        if source is None:
            return self._reject("Please upload an image first.")

        snapshot = self._start(RunPhase.PROMPT_PENDING, parameters=parameters)
        references = (
            parameters.references
            if isinstance(parameters, ProductParameters) and parameters.uses_references
            else ()
        )
        try:
            prompt = await self._call(
                "Prompt synthesis",
                self.prompt_synthesizer.synthesize_prompt(source, references, parameters),
            )
        except Exception as exc:
            return self._fail(snapshot, exc)

        snapshot = self._commit(replace(snapshot, phase=RunPhase.PROMPT_READY, prompt=prompt))
        if snapshot.stale:
            return snapshot
        return await self._render(snapshot, source)

    async def regenerate(
        self,
        source: Optional[ImageAsset],
        prompt: Optional[str],
        ratio: Union[AspectRatio, ConcreteRatio, str],
        mode: Optional[Union[Mode, str]] = None,
    ) -> RunState:
        """Render again from an edited prompt, skipping prompt synthesis."""
        if source is None:
            return self._reject("Please upload an image first.")
        if not prompt or not prompt.strip():
            return self._reject("A prompt is required to regenerate.")

        previous = self._state.parameters
        try:
            active = normalize_mode(mode) if mode is not None else (previous.mode if previous else Mode.PRODUCT)
            base = previous if previous is not None and previous.mode is active else resolve_parameters(active)
            parameters = replace(base, ratio=resolve_parameters(active, {"ratio": ratio}).ratio)
        except RestyleError as exc:
            snapshot = self._start(RunPhase.IMAGE_PENDING, parameters=previous, prompt=prompt)
            return self._fail(snapshot, exc)

        snapshot = self._start(RunPhase.PROMPT_READY, parameters=parameters, prompt=prompt)
        return await self._render(snapshot, source)

    async def _render(self, snapshot: RunState, source: ImageAsset) -> RunState:
        snapshot = self._commit(replace(snapshot, phase=RunPhase.IMAGE_PENDING))
        parameters = snapshot.parameters
        try:
            ratio = concretize(parameters.ratio, source.width, source.height)
            parameters = replace(parameters, ratio=ratio)
            snapshot = self._commit(replace(snapshot, parameters=parameters, ratio=ratio))
            payload = await asyncio.to_thread(normalize_asset, source, ratio, FitMode.CONTAIN)
        except Exception as exc:
            return self._fail(snapshot, exc)
        if not self._is_current(snapshot):
            return replace(snapshot, stale=True)

        try:
            image = await self._call(
                "Image synthesis",
                self.image_synthesizer.synthesize_image(payload, snapshot.prompt, ratio.label),
            )
        except Exception as exc:
            return self._fail(snapshot, exc)
        if not self._is_current(snapshot):
            logger.debug("Discarding stale image of run %d.", snapshot.run_id)
            return replace(snapshot, stale=True)

        timestamp = self._next_timestamp()
        entry = HistoryEntry(
            id=f"{timestamp}-{snapshot.run_id}",
            mode=parameters.mode,
            timestamp=timestamp,
            image=image,
            prompt=snapshot.prompt,
            ratio=ratio,
        )
        done = self._commit(
            replace(
                snapshot,
                phase=RunPhase.DONE,
                image=image,
                error=None,
                history_entry_id=entry.id if self.history is not None else None,
            )
        )
        logger.info("Run %d done (%s, %s).", done.run_id, parameters.mode.value, ratio.label)
        if self.history is None:
            return done

        try:
            await self.history.insert(entry)
        except Exception as exc:
            error = RunError.from_exception(exc, default=ErrorKind.STORAGE)
            logger.warning("Could not save run %d to history: %s", done.run_id, error.message)
            return self._commit(replace(done, history_entry_id=None, history_error=error))
        return done
