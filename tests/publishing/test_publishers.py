"""Tests for stdout and file event publishers."""

import json
from unittest.mock import patch

import pytest

from refdata_app.collaborators import Publisher
from refdata_app.config.publishing import (
    FilePublisherConfig,
    PublisherConfig,
    PublishMethod,
    StdoutPublisherConfig,
    get_default_publisher_config,
    publisher_config_from_dict,
)
from refdata_app.publishing import FilePublisher, PublishError, StdoutPublisher, create_publisher


class TestStdoutPublisher:
    """Test suite for stdout publishing."""

    def test_json_event(self, capsys, clock):
        publisher = StdoutPublisher("stdout", StdoutPublisherConfig(include_timestamp=False))

        publisher.publish("stock-price", {"symbol": "TCS", "price": 3500.0}, clock.now)

        event = json.loads(capsys.readouterr().out)
        assert event == {
            "event_type": "stock-price",
            "timestamp": clock.now.isoformat(),
            "payload": {"symbol": "TCS", "price": 3500.0},
        }
        assert publisher.get_stats()["published_count"] == 1

    def test_pretty_format(self, capsys, clock):
        publisher = StdoutPublisher("stdout", StdoutPublisherConfig(format="pretty"))

        publisher.publish("etf", {}, clock.now)

        assert "EVENT: etf" in capsys.readouterr().out

    def test_satisfies_publisher_protocol(self):
        assert isinstance(StdoutPublisher("stdout", StdoutPublisherConfig()), Publisher)

    def test_health_check(self):
        assert StdoutPublisher("stdout", StdoutPublisherConfig()).health_check() is True


class TestFilePublisher:
    """Test suite for JSON-lines file publishing."""

    def test_appends_events(self, tmp_path, clock):
        path = tmp_path / "events" / "out.jsonl"
        publisher = FilePublisher("file", FilePublisherConfig(output_path=str(path)))

        publisher.publish("stock-price", {"symbol": "A"}, clock.now)
        publisher.publish("stock-price", {"symbol": "B"}, clock.now)

        events = publisher.read_events()
        assert [e["payload"]["symbol"] for e in events] == ["A", "B"]
        assert len(path.read_text().splitlines()) == 2

    def test_truncates_when_not_appending(self, tmp_path, clock):
        path = tmp_path / "out.jsonl"
        path.write_text('{"old": true}\n')

        publisher = FilePublisher("file", FilePublisherConfig(output_path=str(path), append_mode=False))

        assert publisher.read_events() == []

    def test_health_check(self, tmp_path):
        publisher = FilePublisher("file", FilePublisherConfig(output_path=str(tmp_path / "x.jsonl")))
        assert publisher.health_check() is True

    def test_write_failure_raises_publish_error(self, tmp_path, clock):
        publisher = FilePublisher("file", FilePublisherConfig(output_path=str(tmp_path / "x.jsonl")))

        with patch("builtins.open", side_effect=OSError("disk full")):
            with pytest.raises(PublishError):
                publisher.publish("etf", {}, clock.now)

        stats = publisher.get_stats()
        assert stats["error_count"] == 1
        assert stats["success_rate"] == 0.0


class TestEventTypeFilter:
    """Test suite for per-publisher event filtering."""

    def test_filtered_events_are_skipped(self, tmp_path, clock):
        path = tmp_path / "out.jsonl"
        publisher = FilePublisher("file", FilePublisherConfig(output_path=str(path)),
                                  event_types_filter=["etf"])

        publisher.publish("stock-price", {}, clock.now)
        publisher.publish("etf", {}, clock.now)

        assert [e["event_type"] for e in publisher.read_events()] == ["etf"]
        assert publisher.get_stats()["skipped_count"] == 1

    def test_reset_stats(self, capsys, clock):
        publisher = StdoutPublisher("stdout", StdoutPublisherConfig())
        publisher.publish("etf", {}, clock.now)

        publisher.reset_stats()

        assert publisher.get_stats()["published_count"] == 0


class TestPublisherConfig:
    """Test suite for publisher configuration and construction."""

    def test_default_is_stdout(self):
        config = get_default_publisher_config()
        assert config.method is PublishMethod.STDOUT
        assert isinstance(create_publisher(config), StdoutPublisher)

    def test_file_config_from_dict(self, tmp_path):
        config = publisher_config_from_dict({
            "name": "audit",
            "method": "file_output",
            "options": {"output_path": str(tmp_path / "audit.jsonl")},
            "event_types_filter": ["balance-sheet"],
        })

        publisher = create_publisher(config)

        assert isinstance(publisher, FilePublisher)
        assert publisher.name == "audit"
        assert publisher.event_types_filter == ["balance-sheet"]

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            publisher_config_from_dict({"method": "kafka"})

    def test_explicit_config(self, tmp_path):
        config = PublisherConfig(
            name="file",
            method=PublishMethod.FILE_OUTPUT,
            config=FilePublisherConfig(output_path=str(tmp_path / "a.jsonl")),
        )
        assert isinstance(create_publisher(config), FilePublisher)
