from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Iterable, Sequence

from .adapters import Adapter, get_adapter
from .backends import Collaborators
from .config import AppConfig
from .errors import BatchRejected, ConversionError, InvalidState, RunCanceled
from .loader import Loaded, ResourceLoader
from .logging import RunLogEntry, RunLogger
from .models import (
    BatchRun,
    ConversionMode,
    ConversionOptions,
    ConversionResult,
    InputUnit,
    RunState,
)
from .packaging import package_results
from .registry import ArtifactRegistry
from .utils import generate_run_id, run_sync, unique_name, utc_now_iso


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class BatchOrchestrator:
    """Runs one batch at a time through load, convert and packaging stages.

    A run is all-or-nothing: on failure no results are exposed and the
    original error is re-raised. ``reset()`` discards the batch, releases every
    artifact and abandons an in-flight run. Cancelling the task awaiting
    ``run()`` leaves the orchestrator CANCELED until the next reset.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        collaborators: Collaborators | None = None,
        registry: ArtifactRegistry | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        self._config = config or AppConfig()
        self._collaborators = collaborators or Collaborators()
        self._loader = ResourceLoader(self._config, self._collaborators)
        self._registry = registry or ArtifactRegistry()
        self._logger = logger
        self._state = RunState.IDLE
        self._units: list[InputUnit] = []
        self._mode: ConversionMode | None = None
        self._options: dict[ConversionMode, ConversionOptions] = {}
        self._last_run: BatchRun | None = None
        self._generation = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def mode(self) -> ConversionMode | None:
        return self._mode

    @property
    def batch(self) -> tuple[InputUnit, ...]:
        return tuple(self._units)

    @property
    def last_run(self) -> BatchRun | None:
        return self._last_run

    @property
    def registry(self) -> ArtifactRegistry:
        return self._registry

    def select_batch(self, units: Iterable[InputUnit], mode: ConversionMode) -> None:
        self._require_idle("select a batch")
        selected = list(units)
        if mode is ConversionMode.DOCUMENT_TO_IMAGES and len(selected) > 1:
            raise BatchRejected(
                f"{mode.value} converts a single document, got {len(selected)} files"
            )
        self._units = selected
        self._mode = mode

    def set_options(self, mode: ConversionMode, options: ConversionOptions) -> None:
        self._options[mode] = options

    def options_for(self, mode: ConversionMode) -> ConversionOptions:
        options = self._options.get(mode)
        if options is not None:
            return options
        runtime = self._config.runtime
        return ConversionOptions.from_values(
            runtime.default_format, runtime.quality, strict=runtime.strict_formats
        )

    def reset(self) -> None:
        self._generation += 1
        self._registry.release_all()
        self._units = []
        self._mode = None
        self._last_run = None
        self._state = RunState.IDLE

    async def run(self) -> BatchRun | None:
        if not self._units or self._mode is None:
            return None
        self._require_idle("start a run")
        generation = self._generation
        mode = self._mode
        units = list(self._units)
        run = BatchRun(
            run_id=generate_run_id("batch"),
            mode=mode,
            options=self.options_for(mode),
            inputs=[unit.name for unit in units],
            started_at=utc_now_iso(),
        )
        self._last_run = run
        self._transition(run, RunState.LOADING, generation)

        try:
            adapter = get_adapter(mode, self._collaborators, self._config)
            if mode.per_unit:
                results = await self._run_per_unit(run, adapter, units, generation)
            else:
                results = await self._run_whole_batch(run, adapter, units, generation)

            self._transition(run, RunState.PACKAGING, generation)
            start = time.perf_counter()
            packaged = await run_sync(package_results, results, mode, self._collaborators)
            run.timings.packaging_ms += _elapsed_ms(start)
            self._ensure_current(generation)
        except asyncio.CancelledError:
            self._cancel(run)
            if generation == self._generation:
                self._state = RunState.CANCELED
            raise
        except Exception as exc:
            if generation != self._generation:
                self._cancel(run)
                if isinstance(exc, RunCanceled):
                    raise
                raise RunCanceled("Run was reset before it completed") from exc
            self._fail(run, exc)
            raise

        run.results = results
        run.artifacts = self._registry.register(packaged)
        run.finished_at = utc_now_iso()
        self._transition(run, RunState.DONE, generation)
        self._log(run)
        return run

    async def _run_per_unit(
        self, run: BatchRun, adapter: Adapter, units: Sequence[InputUnit], generation: int
    ) -> list[ConversionResult]:
        results: list[ConversionResult] = []
        taken: set[str] = set()
        for unit in units:
            self._transition(run, RunState.LOADING, generation)
            start = time.perf_counter()
            loaded = await self._loader.load(unit, run.mode)
            run.timings.loading_ms += _elapsed_ms(start)
            try:
                self._transition(run, RunState.CONVERTING, generation)
                start = time.perf_counter()
                produced = await run_sync(self._collect, adapter, [loaded], run.options)
                run.timings.converting_ms += _elapsed_ms(start)
                self._ensure_current(generation)
            finally:
                loaded.close()
            results.extend(replace(item, name=unique_name(item.name, taken)) for item in produced)
        return results

    async def _run_whole_batch(
        self, run: BatchRun, adapter: Adapter, units: Sequence[InputUnit], generation: int
    ) -> list[ConversionResult]:
        loaded_items: list[Loaded] = []
        try:
            start = time.perf_counter()
            for unit in units:
                loaded_items.append(await self._loader.load(unit, run.mode))
                self._ensure_current(generation)
            run.timings.loading_ms += _elapsed_ms(start)

            self._transition(run, RunState.CONVERTING, generation)
            start = time.perf_counter()
            produced = await run_sync(self._collect, adapter, loaded_items, run.options)
            run.timings.converting_ms += _elapsed_ms(start)
            self._ensure_current(generation)
        finally:
            for item in loaded_items:
                item.close()
        taken: set[str] = set()
        return [replace(item, name=unique_name(item.name, taken)) for item in produced]

    @staticmethod
    def _collect(
        adapter: Adapter, loaded: Sequence[Loaded], options: ConversionOptions
    ) -> list[ConversionResult]:
        return list(adapter.convert(loaded, options))

    def _require_idle(self, action: str) -> None:
        if self._state is not RunState.IDLE:
            raise InvalidState(f"Cannot {action} while the orchestrator is {self._state.value}; call reset()")

    def _ensure_current(self, generation: int) -> None:
        if generation != self._generation:
            raise RunCanceled("Run was reset before it completed")

    def _transition(self, run: BatchRun, state: RunState, generation: int) -> None:
        self._ensure_current(generation)
        self._state = state
        run.state = state

    def _fail(self, run: BatchRun, exc: Exception) -> None:
        run.results = []
        run.artifacts = []
        run.state = RunState.FAILED
        run.error_code = exc.code if isinstance(exc, ConversionError) else "UNKNOWN"
        run.error_message = str(exc)
        run.finished_at = utc_now_iso()
        self._state = RunState.FAILED
        self._log(run)

    def _cancel(self, run: BatchRun) -> None:
        run.results = []
        run.artifacts = []
        run.state = RunState.CANCELED
        run.error_code = RunCanceled.code
        run.finished_at = utc_now_iso()
        self._log(run)

    def _log(self, run: BatchRun) -> None:
        if self._logger is None:
            return
        self._logger.append(
            RunLogEntry(
                run_id=run.run_id,
                mode=run.mode.value,
                status=run.state.value,
                inputs=list(run.inputs),
                artifacts=[artifact.name for artifact in run.artifacts],
                error_code=run.error_code,
                timings=run.timings,
                size_bytes=sum(artifact.size for artifact in run.artifacts),
                options=run.options.as_dict(),
            )
        )


__all__ = ["BatchOrchestrator"]
