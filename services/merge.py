"""Reconstruction of per-timestamp records from independent field series."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set

from metrics.client import SeriesResult
from metrics.exposition import FIELD_NAMES
from models.records import DataPoint, GatewayIdentity


@dataclass
class MergeResult:
    data_points: List[DataPoint] = field(default_factory=list)
    gateway: Optional[GatewayIdentity] = None


class MetricMerger:
    """Pure merge component that can be unit tested in isolation."""

    def merge(self, results: Mapping[str, SeriesResult]) -> MergeResult:
        """Union every field's timestamps into one record per timestamp.

        ``results`` is keyed by field name. A field with no sample at a given
        timestamp keeps its zero value instead of dropping the record.
        """
        merged = MergeResult()
        timestamps: Set[int] = set()
        for series in results.values():
            timestamps.update(series.values)

        points: Dict[int, DataPoint] = {ts: DataPoint(timestamp=ts) for ts in timestamps}
        for field_name in FIELD_NAMES:
            series = results.get(field_name)
            if series is None:
                continue
            if merged.gateway is None and series.labels is not None:
                merged.gateway = GatewayIdentity(
                    gateway_id=series.labels.get("gateway_id", ""),
                    gateway_name=series.labels.get("gateway_name", ""),
                )
            for timestamp, value in series.values.items():
                if field_name == "interval":
                    setattr(points[timestamp], field_name, int(value))
                else:
                    setattr(points[timestamp], field_name, value)

        merged.data_points = sorted(points.values(), key=lambda point: point.timestamp)
        return merged
