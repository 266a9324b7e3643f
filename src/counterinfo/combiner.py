"""Combining counter samples from multiple reports.

Reports arriving from different data sources or shards describe the same
counters independently. The combiner folds them into one view: samples with
the same identity (name plus dimension-name set) are merged, their dimension
names and dimension values are unioned and their time ranges widened.

Usage:
    from counterinfo.combiner import SampleCombiner, merge

    combiner = SampleCombiner(aggregate_details=True)
    combiner.add_samples(report_a)
    combiner.add_samples(report_b)
    combined = combiner.get_response()

    # Fold one finished report into another
    merge(combined, report_from_other_process)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from counterinfo.models import CounterDescriptor, CounterKey, Report

if TYPE_CHECKING:
    from counterinfo.config import Config

logger = logging.getLogger(__name__)


def merge_sample_data(original: CounterDescriptor, sample: CounterDescriptor) -> None:
    """Merge a sample into a descriptor with the same identity.

    Only ``original`` is mutated.

    Args:
        original: The descriptor being accumulated into.
        sample: The incoming descriptor.
    """
    # Dimension names match case-insensitively here even though identity
    # matching is case-sensitive.
    known = {dim.casefold() for dim in original.dimensions}
    for dim in sample.dimensions:
        if dim.casefold() not in known:
            original.dimensions.append(dim)
            known.add(dim.casefold())

    if sample.start_time < original.start_time:
        original.start_time = sample.start_time
    if sample.end_time > original.end_time:
        original.end_time = sample.end_time

    if sample.dimension_values is not None:
        # Upstream may emit the same dimension under different casings.
        original.fix_dimension_values_case()
        for dim, values in sample.dimension_values.items():
            original.add_dimension_values(dim, values)


def merge(target: Report, source: Report | None) -> None:
    """Fold the counters of ``source`` into ``target`` in place.

    Counters already present in the target are merged, new ones are
    appended. Request details are left untouched. No locking is done;
    the caller must own both reports for the duration of the call.

    Args:
        target: The report to merge into.
        source: The report to merge from. None or empty is a no-op.

    Raises:
        ValueError: If target is None.
    """
    if target is None:
        raise ValueError("Cannot merge into a missing report")
    if source is None or not source.counters:
        return

    aggregated = {counter.key: counter for counter in target.counters}

    for counter in source.counters:
        key = counter.key
        existing = aggregated.get(key)
        if existing is not None:
            merge_sample_data(existing, counter)
        else:
            target.counters.append(counter)
            aggregated[key] = counter


class SampleCombiner:
    """Accumulates counter samples across many reports.

    Safe to use from multiple threads. The counters table and the request
    details list are guarded by separate locks; all counters of a single
    report are merged while holding the counters lock.
    """

    def __init__(self, aggregate_details: bool = False):
        """Initialize the combiner.

        Args:
            aggregate_details: If True, request details carried by incoming
                reports are concatenated and returned by get_response().
        """
        self._aggregate_details = aggregate_details
        self._known_counters: dict[CounterKey, CounterDescriptor] = {}
        self._details: list[Any] = []
        self._counters_lock = threading.Lock()
        self._details_lock = threading.Lock()

    @property
    def aggregate_details(self) -> bool:
        """Whether request details are collected. Fixed at construction."""
        return self._aggregate_details

    @classmethod
    def from_config(cls, config: Config) -> SampleCombiner:
        """Create a combiner from the [combiner] configuration section."""
        return cls(aggregate_details=config.combiner.aggregate_details)

    def add_samples(self, report: Report) -> None:
        """Add all samples from a report.

        Descriptors with an unknown identity are taken over by the combiner
        and mutated by later merges.

        Args:
            report: The report to fold in.

        Raises:
            ValueError: If report is None.
        """
        if report is None:
            raise ValueError("Cannot add samples from a missing report")

        with self._counters_lock:
            for sample in report.counters:
                self._add_sample_data(sample)

        if report.request_details and self._aggregate_details:
            with self._details_lock:
                self._details.extend(report.request_details)

    def get_response(self) -> Report:
        """Snapshot the accumulated state.

        Returns:
            A new Report sharing no mutable state with the combiner.
        """
        with self._counters_lock:
            counters = [counter.copy() for counter in self._known_counters.values()]

        response = Report(counters=counters)
        if self._aggregate_details:
            with self._details_lock:
                response.request_details = list(self._details)

        return response

    def _add_sample_data(self, sample: CounterDescriptor) -> None:
        key = sample.key
        known = self._known_counters.get(key)
        if known is None:
            logger.debug(f"New counter {sample.name} {sorted(key.dimensions)}")
            self._known_counters[key] = sample
        else:
            logger.debug(f"Merging sample into counter {sample.name}")
            merge_sample_data(known, sample)

    merge = staticmethod(merge)
