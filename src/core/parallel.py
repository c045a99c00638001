"""Bounded-concurrency batch execution with partial-failure tracking.

`run_batch` runs one worker call per unique item (items are deduplicated by
a normalized key), processes the unique work in sequential groups with at
most `max_concurrency` calls in flight, sleeps between groups to stay under
the upstream rate limit, and returns successes and failures separately in
input order. A failing item never aborts its siblings or later groups.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
)

from core.errors import ValidationError

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")
InputT_contra = TypeVar("InputT_contra", contravariant=True)
OutputT_co = TypeVar("OutputT_co", covariant=True)


class Worker(Protocol[InputT_contra, OutputT_co]):
    """Async operation run once per unique batch item.

    Returning a value records a success; raising any Exception records a
    failure whose reason is the exception message.
    """

    def __call__(self, item: InputT_contra) -> Awaitable[OutputT_co]:
        ...


KeyFn = Callable[[Any], str]


def normalize_key(item: object) -> str:
    """Default dedup key: case-insensitive, surrounding whitespace ignored."""
    return str(item).strip().lower()


@dataclass(frozen=True)
class BatchConfig:
    max_concurrency: int = 5
    batch_size: int = 10
    inter_batch_delay_ms: int = 100
    item_timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        for name in ("max_concurrency", "batch_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"{name} must be an integer >= 1, got {value!r}")
        if self.inter_batch_delay_ms < 0:
            raise ValidationError(f"inter_batch_delay_ms must be >= 0, got {self.inter_batch_delay_ms}")
        if self.item_timeout_seconds is not None and self.item_timeout_seconds <= 0:
            raise ValidationError(f"item_timeout_seconds must be positive, got {self.item_timeout_seconds}")


@dataclass(frozen=True, slots=True)
class BatchWorkItem(Generic[InputT]):
    input: InputT
    normalized_key: str
    original_index: int


@dataclass(frozen=True, slots=True)
class BatchSuccess(Generic[InputT, OutputT]):
    original_index: int
    input: InputT
    value: OutputT


@dataclass(frozen=True, slots=True)
class BatchFailure(Generic[InputT]):
    original_index: int
    input: InputT
    error: str


@dataclass(frozen=True)
class BatchResult(Generic[InputT, OutputT]):
    """Outcome of a batch. Both partitions are sorted by original_index."""

    succeeded: Tuple[BatchSuccess[InputT, OutputT], ...] = ()
    failed: Tuple[BatchFailure[InputT], ...] = ()

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    @property
    def all_failed(self) -> bool:
        return self.total > 0 and not self.succeeded

    def values(self) -> List[OutputT]:
        return [s.value for s in self.succeeded]

    def summary(self) -> str:
        return f"{len(self.succeeded)} succeeded, {len(self.failed)} failed"

    def to_dict(self, render: Optional[Callable[[OutputT], Any]] = None) -> Dict[str, Any]:
        fmt = render or (lambda v: v)
        return {
            "total": self.total,
            "succeeded_count": len(self.succeeded),
            "failed_count": len(self.failed),
            "succeeded": [
                {"index": s.original_index, "input": s.input, "value": fmt(s.value)} for s in self.succeeded
            ],
            "failed": [{"index": f.original_index, "input": f.input, "error": f.error} for f in self.failed],
        }


@dataclass(slots=True)
class _Outcome:
    ok: bool
    value: Any = None
    error: str = ""


class ItemTimeoutError(Exception):
    """A single worker call exceeded item_timeout_seconds."""


def _build_work_items(items: Sequence[InputT], key: KeyFn) -> List[BatchWorkItem[InputT]]:
    out: List[BatchWorkItem[InputT]] = []
    for index, item in enumerate(items):
        k = key(item)
        if not isinstance(k, str) or not k:
            raise ValidationError(f"Batch item at index {index} has an empty key: {item!r}")
        out.append(BatchWorkItem(input=item, normalized_key=k, original_index=index))
    return out


def _dedupe(work: List[BatchWorkItem[InputT]]) -> "OrderedDict[str, List[BatchWorkItem[InputT]]]":
    # First occurrence decides both execution order and the input the worker sees
    groups: "OrderedDict[str, List[BatchWorkItem[InputT]]]" = OrderedDict()
    for w in work:
        groups.setdefault(w.normalized_key, []).append(w)
    return groups


def _chunks(seq: List[Any], size: int) -> Iterator[List[Any]]:
    for i in range(0, len(seq), size):
        yield seq[i : i + size]


def _reason(exc: BaseException) -> str:
    msg = str(exc).strip()
    return msg or type(exc).__name__


async def _invoke(worker: Worker[InputT, OutputT], item: InputT, timeout: Optional[float]) -> OutputT:
    if timeout is None:
        return await worker(item)
    try:
        return await asyncio.wait_for(worker(item), timeout)
    except asyncio.TimeoutError as e:
        raise ItemTimeoutError(f"Timed out after {timeout:g}s") from e


async def _run_group(
    group: List[List[BatchWorkItem[InputT]]],
    worker: Worker[InputT, OutputT],
    config: BatchConfig,
    outcomes: Dict[str, _Outcome],
) -> None:
    sem = asyncio.Semaphore(config.max_concurrency)

    async def _one(members: List[BatchWorkItem[InputT]]) -> None:
        first = members[0]
        async with sem:
            try:
                value = await _invoke(worker, first.input, config.item_timeout_seconds)
            except Exception as e:
                reason = _reason(e)
                logger.warning("batch item %r failed: %s", first.input, reason)
                outcomes[first.normalized_key] = _Outcome(ok=False, error=reason)
                return
        outcomes[first.normalized_key] = _Outcome(ok=True, value=value)

    # Tasks queue on the semaphore in creation order, so start order follows input order
    await asyncio.gather(*(_one(members) for members in group))


async def run_batch(
    items: Sequence[InputT],
    worker: Worker[InputT, OutputT],
    config: Optional[BatchConfig] = None,
    *,
    key: KeyFn = normalize_key,
) -> BatchResult[InputT, OutputT]:
    """Run `worker` once per unique item and report per-item outcomes.

    Duplicates (equal `key(item)`) share one call and one outcome, which is
    fanned back out to every original index. Raises ValidationError only for
    misuse (bad config, empty key); worker errors end up in `failed`.
    """
    cfg = config or BatchConfig()
    work = _build_work_items(items, key)
    if not work:
        return BatchResult()

    unique = _dedupe(work)
    groups = list(_chunks(list(unique.values()), cfg.batch_size))
    logger.debug(
        "running batch: %d items, %d unique, %d groups (concurrency=%d)",
        len(work),
        len(unique),
        len(groups),
        cfg.max_concurrency,
    )

    outcomes: Dict[str, _Outcome] = {}
    for n, group in enumerate(groups):
        # Pace between groups only; nothing to wait for after the last one
        if n > 0 and cfg.inter_batch_delay_ms > 0:
            await asyncio.sleep(cfg.inter_batch_delay_ms / 1000.0)
        logger.debug("batch group %d/%d: %d unique items", n + 1, len(groups), len(group))
        await _run_group(group, worker, cfg, outcomes)

    succeeded: List[BatchSuccess[InputT, OutputT]] = []
    failed: List[BatchFailure[InputT]] = []
    for k, members in unique.items():
        outcome = outcomes[k]
        for m in members:
            if outcome.ok:
                succeeded.append(BatchSuccess(original_index=m.original_index, input=m.input, value=outcome.value))
            else:
                failed.append(BatchFailure(original_index=m.original_index, input=m.input, error=outcome.error))

    succeeded.sort(key=lambda s: s.original_index)
    failed.sort(key=lambda f: f.original_index)

    result: BatchResult[InputT, OutputT] = BatchResult(succeeded=tuple(succeeded), failed=tuple(failed))
    logger.info("batch finished: %s", result.summary())
    return result
