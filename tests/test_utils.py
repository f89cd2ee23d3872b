"""
Tests for the logging, metrics and configuration helpers.
"""

import json
import logging

import pytest

from utils.config import ClientConfig, get_config, set_config, is_testing, is_production
from utils.logging_config import StructuredFormatter
from utils.metrics import MetricsCollector, MetricType, TimerContext, get_metrics_collector, log_performance


@pytest.fixture(autouse=True)
def reset_global_config():
    set_config(None)
    yield
    set_config(None)


def test_collector_aggregates_durations():
    collector = MetricsCollector()
    collector.record_duration("handshake", 10.0)
    collector.record_duration("handshake", 30.0)
    collector.increment("audio_upload", 640)

    stats = collector.get_stats("handshake")
    assert stats["count"] == 2
    assert stats["avg_time"] == pytest.approx(20.0)
    assert stats["min_time"] == 10.0
    assert stats["max_time"] == 30.0
    assert "audio_upload" not in collector.get_stats()
    assert collector.get_counters()["audio_upload"] == {"events": 1, "total": 640.0}

    uploads = collector.get_recent_metrics("audio_upload")
    assert [(metric.metric_type, metric.value) for metric in uploads] == [(MetricType.COUNTER, 640)]


def test_summary_report():
    collector = MetricsCollector()
    assert collector.get_summary_report() == "No metrics collected"
    collector.record_duration("playback", 5.0)
    collector.increment("audio_upload", 640)
    collector.increment("audio_upload", 640)
    report = collector.get_summary_report()
    assert "playback: 1x, avg 5.00ms" in report
    assert "audio_upload: 2 events, 1,280 total" in report


def test_timer_context_records_checkpoints():
    collector = get_metrics_collector()
    collector.clear()

    timer = TimerContext("handshake_test", {"mode": "tts"}).start()
    timer.checkpoint("transport_open")
    duration = timer.end()

    assert duration >= 0.0
    assert timer.end() == 0.0
    recent = collector.get_recent_metrics("handshake_test")
    assert len(recent) == 1
    assert "transport_open" in recent[0].metadata["checkpoints"]


def test_structured_formatter_includes_session_fields():
    record = logging.LogRecord("talkscriber.test", logging.INFO, __file__, 1, "connected", None, None)
    record.session_id = "abc-123"
    record.duration_ms = 12.5
    record.chunks = 3

    data = json.loads(StructuredFormatter({"service": "talkscriber"}).format(record))
    assert data["message"] == "connected"
    assert data["session_id"] == "abc-123"
    assert data["duration_ms"] == 12.5
    assert data["chunks"] == 3
    assert data["service"] == "talkscriber"


def test_testing_environment_defaults(monkeypatch):
    monkeypatch.setenv("TALKSCRIBER_ENV", "testing")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    config = get_config()
    assert is_testing()
    assert config.logging.level == "WARNING"
    assert config.logging.format_type == "minimal"
    assert not config.metrics.enabled


def test_production_respects_explicit_log_level(monkeypatch):
    monkeypatch.setenv("TALKSCRIBER_ENV", "production")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    config = ClientConfig.from_env()
    set_config(config)
    assert is_production()
    assert config.logging.level == "DEBUG"
    assert config.logging.format_type == "structured"


def test_service_credentials_from_env(monkeypatch):
    monkeypatch.setenv("TALKSCRIBER_API_KEY", "from-env")
    assert ClientConfig.from_env().service.api_key == "from-env"


def test_disabled_metrics_are_not_recorded():
    config = ClientConfig(environment="testing")
    config.metrics.enabled = False
    set_config(config)
    collector = get_metrics_collector()
    collector.clear()

    log_performance("quiet_operation", 5.0)
    assert collector.get_recent_metrics("quiet_operation") == []


def test_slow_operations_log_as_warning(caplog):
    config = ClientConfig(environment="development")
    config.metrics.enabled = True
    config.metrics.enable_performance_logging = True
    config.metrics.log_slow_operations_ms = 50.0
    set_config(config)

    with caplog.at_level(logging.INFO, logger="utils.metrics"):
        log_performance("slow_operation", 75.0)
    assert [record.levelno for record in caplog.records if "slow_operation" in record.getMessage()] == [logging.WARNING]
