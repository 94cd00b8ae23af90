"""
Scan fraud heuristics

Pure function of a scan and the ticket's previous scans: no database access,
same inputs give the same analysis. The result is advisory and never decides
admission.
"""

import math
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from datetime import datetime
from typing import Any

EARTH_RADIUS_KM = 6371.0


class Severity:
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'


class RiskLevel:
    MINIMAL = 'minimal'
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'


class Recommendation:
    ALLOW = 'allow'
    MONITOR = 'monitor'
    REVIEW = 'review'
    BLOCK = 'block'


CONFIDENCE = {
    Recommendation.ALLOW: 0.95,
    Recommendation.BLOCK: 0.9,
    Recommendation.REVIEW: 0.8,
    Recommendation.MONITOR: 0.7,
}


@dataclass(frozen=True)
class FraudThresholds:
    rapid_scan_seconds: float = 10
    frequent_scan_seconds: float = 30
    recent_window: int = 5
    unusual_hour_start: int = 6
    unusual_hour_end: int = 22
    high_frequency_seconds: float = 60
    impossible_frequency_seconds: float = 5
    impossible_distance_km: float = 10
    min_history_for_frequency: int = 2

    weight_rapid_scans: int = 30
    weight_frequent_scans: int = 15
    weight_multiple_locations: int = 25
    weight_multiple_devices: int = 20
    weight_unusual_hours: int = 10
    weight_high_frequency: int = 25
    weight_impossible_frequency: int = 50
    weight_impossible_distance: int = 40

    # upper bounds (exclusive) of minimal, low, medium, high
    risk_bands: tuple = (5, 15, 30, 50)

    @classmethod
    def from_mapping(cls, values: dict[str, Any] | None) -> 'FraudThresholds':
        """Build from a settings dict, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        overrides = {key: value for key, value in (values or {}).items() if key in known and value is not None}
        if 'risk_bands' in overrides:
            overrides['risk_bands'] = tuple(overrides['risk_bands'])
        return cls(**overrides)

    @classmethod
    def from_settings(cls) -> 'FraudThresholds':
        from django.conf import settings

        return cls.from_mapping(getattr(settings, 'FRAUD_THRESHOLDS', None))


@dataclass(frozen=True)
class ScanRecord:
    scan_time: datetime
    location: str | None = None
    device: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class FraudFlag:
    type: str
    severity: str
    weight: int
    evidence: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FraudAnalysis:
    flags: list[FraudFlag]
    risk_score: int
    risk_level: str
    recommendation: str
    confidence: float

    @property
    def flag_types(self) -> list[str]:
        return [flag.type for flag in self.flags]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


class FraudAnalyzer:
    def __init__(self, thresholds: FraudThresholds | None = None):
        self.thresholds = thresholds or FraudThresholds.from_settings()

    def analyze(self, current: ScanRecord, recent_scans: list[ScanRecord]) -> FraudAnalysis:
        history = sorted(recent_scans, key=lambda scan: scan.scan_time)

        flags = [
            *self._interval_flags(current, history),
            *self._diversity_flags(current, history),
            *self._hour_flags(current),
            *self._frequency_flags(history),
            *self._distance_flags(current, history),
        ]

        score = sum(flag.weight for flag in flags)
        level = self._risk_level(score)
        if any(flag.severity == Severity.CRITICAL for flag in flags):
            level = RiskLevel.CRITICAL

        recommendation = self._recommendation(flags, level)
        return FraudAnalysis(
            flags=flags,
            risk_score=score,
            risk_level=level,
            recommendation=recommendation,
            confidence=CONFIDENCE[recommendation],
        )

    def _interval_flags(self, current: ScanRecord, history: list[ScanRecord]) -> list[FraudFlag]:
        if not history:
            return []
        t = self.thresholds
        seconds = (current.scan_time - history[-1].scan_time).total_seconds()
        if seconds < t.rapid_scan_seconds:
            return [FraudFlag('RAPID_SCANS', Severity.HIGH, t.weight_rapid_scans, {'seconds_since_last': seconds})]
        if seconds < t.frequent_scan_seconds:
            return [
                FraudFlag('FREQUENT_SCANS', Severity.MEDIUM, t.weight_frequent_scans, {'seconds_since_last': seconds})
            ]
        return []

    def _diversity_flags(self, current: ScanRecord, history: list[ScanRecord]) -> list[FraudFlag]:
        t = self.thresholds
        window = history[-(t.recent_window - 1):] + [current] if t.recent_window > 1 else [current]
        flags = []

        locations = sorted({scan.location for scan in window if scan.location})
        if len(locations) > 1:
            flags.append(
                FraudFlag('MULTIPLE_LOCATIONS', Severity.HIGH, t.weight_multiple_locations, {'locations': locations})
            )

        devices = sorted({scan.device for scan in window if scan.device})
        if len(devices) > 1:
            flags.append(FraudFlag('MULTIPLE_DEVICES', Severity.MEDIUM, t.weight_multiple_devices, {'devices': devices}))
        return flags

    def _hour_flags(self, current: ScanRecord) -> list[FraudFlag]:
        t = self.thresholds
        hour = current.scan_time.hour
        if hour < t.unusual_hour_start or hour > t.unusual_hour_end:
            return [FraudFlag('UNUSUAL_HOURS', Severity.LOW, t.weight_unusual_hours, {'hour': hour})]
        return []

    def _frequency_flags(self, history: list[ScanRecord]) -> list[FraudFlag]:
        t = self.thresholds
        if len(history) < t.min_history_for_frequency:
            return []

        intervals = [
            (later.scan_time - earlier.scan_time).total_seconds() for earlier, later in zip(history, history[1:])
        ]
        mean_interval = sum(intervals) / len(intervals)
        flags = []
        if mean_interval < t.high_frequency_seconds:
            flags.append(
                FraudFlag(
                    'HIGH_FREQUENCY',
                    Severity.HIGH,
                    t.weight_high_frequency,
                    {'mean_interval_seconds': round(mean_interval, 3)},
                )
            )
        if min(intervals) < t.impossible_frequency_seconds:
            flags.append(
                FraudFlag(
                    'IMPOSSIBLE_FREQUENCY',
                    Severity.CRITICAL,
                    t.weight_impossible_frequency,
                    {'min_interval_seconds': min(intervals)},
                )
            )
        return flags

    def _distance_flags(self, current: ScanRecord, history: list[ScanRecord]) -> list[FraudFlag]:
        t = self.thresholds
        geotagged = [scan for scan in [*history, current] if scan.has_coordinates]
        distances = [
            haversine_km(a.latitude, a.longitude, b.latitude, b.longitude) for a, b in zip(geotagged, geotagged[1:])
        ]
        if distances and max(distances) > t.impossible_distance_km:
            return [
                FraudFlag(
                    'IMPOSSIBLE_DISTANCE',
                    Severity.CRITICAL,
                    t.weight_impossible_distance,
                    {'max_distance_km': round(max(distances), 3)},
                )
            ]
        return []

    def _risk_level(self, score: int) -> str:
        minimal, low, medium, high = self.thresholds.risk_bands
        if score < minimal:
            return RiskLevel.MINIMAL
        if score < low:
            return RiskLevel.LOW
        if score < medium:
            return RiskLevel.MEDIUM
        if score < high:
            return RiskLevel.HIGH
        return RiskLevel.CRITICAL

    @staticmethod
    def _recommendation(flags: list[FraudFlag], level: str) -> str:
        if not flags:
            return Recommendation.ALLOW
        if level == RiskLevel.CRITICAL:
            return Recommendation.BLOCK
        if level == RiskLevel.HIGH:
            return Recommendation.REVIEW
        return Recommendation.MONITOR
