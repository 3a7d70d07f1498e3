"""Data model for samples and descriptors.

Sub-collectors emit :class:`MetricSample` objects into a :class:`MetricSink`.
Every sample carries the :class:`MetricDescriptor` of its family, which is how
the exporter learns its own schema without keeping a separate list of
descriptors. Rendering into ``prometheus_client`` metric families happens only
at the edge, in :func:`to_metric_families`.
"""

from __future__ import annotations

import queue
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from oracledb_exporter.exceptions import LabelSchemaError
from oracledb_exporter.naming import NAMESPACE, build_fq_name

logger = structlog.get_logger()


class MetricKind(str, Enum):
    """Value kind of a metric family."""

    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class MetricDescriptor:
    """Schema of a metric family: name, help text, label keys and kind."""

    name: str
    help: str
    label_keys: tuple[str, ...] = ()
    kind: MetricKind = MetricKind.GAUGE

    @classmethod
    def build(
        cls,
        subsystem: str,
        name: str,
        help: str,
        label_keys: Iterable[str] = (),
        kind: MetricKind = MetricKind.GAUGE,
        namespace: str = NAMESPACE,
    ) -> MetricDescriptor:
        """Build a descriptor named ``<namespace>_<subsystem>_<name>``."""
        return cls(
            name=build_fq_name(namespace, subsystem, name),
            help=help,
            label_keys=tuple(label_keys),
            kind=kind,
        )

    def same_schema(self, other: MetricDescriptor) -> bool:
        return self.label_keys == other.label_keys and self.kind == other.kind


@dataclass(frozen=True)
class MetricSample:
    """One observation of a family during a pass."""

    descriptor: MetricDescriptor
    label_values: tuple[str, ...]
    value: float

    @classmethod
    def create(cls, descriptor: MetricDescriptor, value: float, *label_values: str) -> MetricSample:
        """Create a sample, checking label values against the declared keys.

        Raises:
            LabelSchemaError: if the number of label values differs from the
                number of label keys of ``descriptor``.
        """
        if len(label_values) != len(descriptor.label_keys):
            raise LabelSchemaError(
                f"{descriptor.name}: expected {len(descriptor.label_keys)} label values "
                f"{list(descriptor.label_keys)}, got {len(label_values)}"
            )
        return cls(
            descriptor=descriptor,
            label_values=tuple(str(v) for v in label_values),
            value=float(value),
        )

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def labels(self) -> dict[str, str]:
        return dict(zip(self.descriptor.label_keys, self.label_values))


class MetricSink(Protocol):
    """Destination for samples emitted during a pass."""

    def emit(self, sample: MetricSample) -> None: ...


class SampleBuffer:
    """In-memory sink that keeps samples in emission order."""

    def __init__(self) -> None:
        self.samples: list[MetricSample] = []

    def emit(self, sample: MetricSample) -> None:
        self.samples.append(sample)

    def __iter__(self) -> Iterator[MetricSample]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)


class QueueSink:
    """Sink that hands each sample to a consumer through a queue.

    ``put`` blocks while the queue is full, so with a bounded queue the
    producer never runs ahead of the consumer by more than ``maxsize`` items.
    """

    def __init__(self, handoff: queue.Queue) -> None:
        self._handoff = handoff

    def emit(self, sample: MetricSample) -> None:
        self._handoff.put(sample)


def _new_family(descriptor: MetricDescriptor) -> Metric:
    if descriptor.kind is MetricKind.COUNTER:
        return CounterMetricFamily(descriptor.name, descriptor.help, labels=list(descriptor.label_keys))
    return GaugeMetricFamily(descriptor.name, descriptor.help, labels=list(descriptor.label_keys))


def to_metric_families(samples: Iterable[MetricSample]) -> list[Metric]:
    """Group samples into ``prometheus_client`` families, in first-seen order.

    The first descriptor seen for a name defines the family. Later samples
    whose label keys or kind disagree with it are dropped and logged.
    """
    families: dict[str, tuple[MetricDescriptor, Metric]] = {}
    for sample in samples:
        descriptor = sample.descriptor
        entry = families.get(descriptor.name)
        if entry is None:
            entry = (descriptor, _new_family(descriptor))
            families[descriptor.name] = entry
        elif not entry[0].same_schema(descriptor):
            logger.warning(
                "inconsistent label schema, sample dropped",
                family=descriptor.name,
                declared=list(entry[0].label_keys),
                got=list(descriptor.label_keys),
            )
            continue
        entry[1].add_metric(list(sample.label_values), sample.value)
    return [family for _, family in families.values()]


def to_descriptor_families(descriptors: Iterable[MetricDescriptor]) -> list[Metric]:
    """Render descriptors as families without samples."""
    return [_new_family(descriptor) for descriptor in descriptors]
