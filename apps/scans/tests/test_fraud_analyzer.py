from datetime import datetime
from datetime import timedelta
from datetime import timezone as dt_timezone

from django.test import SimpleTestCase

from apps.scans.services.fraud_analyzer import FraudAnalyzer
from apps.scans.services.fraud_analyzer import FraudThresholds
from apps.scans.services.fraud_analyzer import Recommendation
from apps.scans.services.fraud_analyzer import RiskLevel
from apps.scans.services.fraud_analyzer import ScanRecord
from apps.scans.services.fraud_analyzer import Severity
from apps.scans.services.fraud_analyzer import haversine_km

NOON = datetime(2026, 5, 20, 12, 0, tzinfo=dt_timezone.utc)


class FraudAnalyzerTest(SimpleTestCase):
    """Тести для евристик виявлення шахрайства при скануванні"""

    def setUp(self):
        self.analyzer = FraudAnalyzer(thresholds=FraudThresholds())

    def test_first_scan_is_clean(self):
        """Тест: перше сканування без історії не має прапорців"""
        analysis = self.analyzer.analyze(ScanRecord(scan_time=NOON), [])

        self.assertEqual(analysis.flags, [])
        self.assertEqual(analysis.risk_score, 0)
        self.assertEqual(analysis.risk_level, RiskLevel.MINIMAL)
        self.assertEqual(analysis.recommendation, Recommendation.ALLOW)
        self.assertEqual(analysis.confidence, 0.95)

    def test_rapid_rescan(self):
        """Тест: повторне сканування через 3 секунди позначається як RAPID_SCANS"""
        history = [ScanRecord(scan_time=NOON - timedelta(seconds=3))]

        analysis = self.analyzer.analyze(ScanRecord(scan_time=NOON), history)

        rapid = [flag for flag in analysis.flags if flag.type == 'RAPID_SCANS']
        self.assertEqual(len(rapid), 1)
        self.assertEqual(rapid[0].severity, Severity.HIGH)
        self.assertIn(analysis.risk_level, (RiskLevel.HIGH, RiskLevel.CRITICAL))
        self.assertIn(analysis.recommendation, (Recommendation.REVIEW, Recommendation.BLOCK))

    def test_frequent_rescan(self):
        """Тест: повтор через 20 секунд дає FREQUENT_SCANS"""
        history = [ScanRecord(scan_time=NOON - timedelta(seconds=20))]

        analysis = self.analyzer.analyze(ScanRecord(scan_time=NOON), history)

        self.assertEqual(analysis.flag_types, ['FREQUENT_SCANS'])
        self.assertEqual(analysis.risk_score, 15)
        self.assertEqual(analysis.risk_level, RiskLevel.MEDIUM)
        self.assertEqual(analysis.recommendation, Recommendation.MONITOR)

    def test_impossible_distance(self):
        """Тест: два сканування за 20 км одне від одного дають критичний ризик"""
        history = [
            ScanRecord(scan_time=NOON - timedelta(seconds=50), latitude=50.45, longitude=30.52),
            ScanRecord(scan_time=NOON - timedelta(seconds=20), latitude=50.45, longitude=30.8032),
        ]

        analysis = self.analyzer.analyze(ScanRecord(scan_time=NOON), history)

        self.assertIn('IMPOSSIBLE_DISTANCE', analysis.flag_types)
        self.assertEqual(analysis.risk_level, RiskLevel.CRITICAL)
        self.assertEqual(analysis.recommendation, Recommendation.BLOCK)

    def test_multiple_locations_and_devices(self):
        """Тест: різні місця та пристрої у вікні сканувань"""
        history = [ScanRecord(scan_time=NOON - timedelta(hours=1), location='Gate A', device='scanner-1')]

        analysis = self.analyzer.analyze(
            ScanRecord(scan_time=NOON, location='Gate B', device='scanner-2'), history
        )

        self.assertEqual(analysis.flag_types, ['MULTIPLE_LOCATIONS', 'MULTIPLE_DEVICES'])
        self.assertEqual(analysis.risk_score, 45)
        self.assertEqual(analysis.risk_level, RiskLevel.HIGH)

    def test_unusual_hours(self):
        """Тест: сканування о третій ночі позначається"""
        analysis = self.analyzer.analyze(ScanRecord(scan_time=NOON.replace(hour=3)), [])

        self.assertEqual(analysis.flag_types, ['UNUSUAL_HOURS'])
        self.assertEqual(analysis.risk_level, RiskLevel.LOW)

    def test_impossible_frequency(self):
        """Тест: інтервал менше 5 секунд в історії дає критичний прапорець"""
        history = [
            ScanRecord(scan_time=NOON - timedelta(minutes=10)),
            ScanRecord(scan_time=NOON - timedelta(minutes=10) + timedelta(seconds=2)),
        ]

        analysis = self.analyzer.analyze(ScanRecord(scan_time=NOON), history)

        self.assertIn('HIGH_FREQUENCY', analysis.flag_types)
        self.assertIn('IMPOSSIBLE_FREQUENCY', analysis.flag_types)
        self.assertEqual(analysis.risk_level, RiskLevel.CRITICAL)

    def test_analysis_is_deterministic(self):
        """Тест: однакові входи дають однаковий результат"""
        history = [
            ScanRecord(scan_time=NOON - timedelta(seconds=8), location='Gate A'),
            ScanRecord(scan_time=NOON - timedelta(seconds=4), location='Gate B'),
        ]
        current = ScanRecord(scan_time=NOON, location='Gate A')

        first = self.analyzer.analyze(current, history)
        second = self.analyzer.analyze(current, list(reversed(history)))

        self.assertEqual(first, second)

    def test_thresholds_from_mapping(self):
        """Тест: пороги з налаштувань перевизначають значення за замовчуванням"""
        thresholds = FraudThresholds.from_mapping({'rapid_scan_seconds': 2, 'unknown': 1, 'risk_bands': [1, 2, 3, 4]})

        self.assertEqual(thresholds.rapid_scan_seconds, 2)
        self.assertEqual(thresholds.risk_bands, (1, 2, 3, 4))

        analysis = FraudAnalyzer(thresholds).analyze(
            ScanRecord(scan_time=NOON), [ScanRecord(scan_time=NOON - timedelta(seconds=3))]
        )
        self.assertEqual(analysis.flag_types, ['FREQUENT_SCANS'])

    def test_haversine(self):
        """Тест відстані між координатами"""
        self.assertAlmostEqual(haversine_km(50.45, 30.52, 50.45, 30.52), 0.0)
        self.assertAlmostEqual(haversine_km(0, 0, 0, 1), 111.19, places=1)
