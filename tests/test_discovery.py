import os
import time

import pytest

from p2pchat.peer.discovery import DiscoveryRecord, DiscoveryStore


class TestFindLatest:
    def test_missing_directory(self, tmp_path):
        store = DiscoveryStore(str(tmp_path / "does-not-exist"))
        assert store.find_latest() is None

    def test_empty_directory(self, tmp_path):
        assert DiscoveryStore(str(tmp_path)).find_latest() is None

    def test_path_is_a_file(self, tmp_path):
        path = tmp_path / "not-a-dir"
        path.write_text("x")
        assert DiscoveryStore(str(path)).find_latest() is None

    def test_picks_most_recent(self, tmp_path):
        store = DiscoveryStore(str(tmp_path))
        store.publish("10.0.0.1", 1111)
        store.publish("10.0.0.2", 2222)
        now = time.time()
        os.utime(tmp_path / "10.0.0.1", (now, now))
        os.utime(tmp_path / "10.0.0.2", (now - 60, now - 60))

        record = store.find_latest()
        assert (record.address, record.port) == ("10.0.0.1", 1111)

    def test_skips_foreign_and_malformed_files(self, tmp_path):
        (tmp_path / "notes.txt").write_text("12345")
        (tmp_path / "10.0.0.9").write_text("not a port")
        (tmp_path / "10.0.0.8").write_text("70000")
        (tmp_path / "10.0.0.7").write_text("4242")

        record = DiscoveryStore(str(tmp_path)).find_latest()
        assert (record.address, record.port) == ("10.0.0.7", 4242)


class TestPublish:
    def test_publish_then_find(self, tmp_path):
        store = DiscoveryStore(str(tmp_path))
        assert store.publish("192.168.1.50", 12345)

        record = store.find_latest()
        assert isinstance(record, DiscoveryRecord)
        assert record.address == "192.168.1.50"
        assert record.port == 12345

    def test_file_layout(self, tmp_path):
        DiscoveryStore(str(tmp_path)).publish("192.168.1.50", 9999)
        assert (tmp_path / "192.168.1.50").read_text() == "9999"

    def test_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "discovery"
        assert DiscoveryStore(str(path)).publish("10.1.2.3", 80)
        assert (path / "10.1.2.3").exists()

    def test_overwrite_last_writer_wins(self, tmp_path):
        store = DiscoveryStore(str(tmp_path))
        store.publish("10.0.0.5", 1000)
        store.publish("10.0.0.5", 2000)
        assert store.find_latest().port == 2000
        assert os.listdir(tmp_path) == ["10.0.0.5"]

    def test_rejects_non_dotted_quad(self, tmp_path):
        with pytest.raises(ValueError):
            DiscoveryStore(str(tmp_path)).publish("my-laptop.local", 12345)

    def test_unwritable_path_is_not_fatal(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = DiscoveryStore(str(blocker / "discovery"))
        assert store.publish("10.0.0.5", 12345) is False

    def test_publish_all_reports_written(self, tmp_path):
        store = DiscoveryStore(str(tmp_path))
        assert store.publish_all(["10.0.0.1", "10.0.0.2"], 5000) == ["10.0.0.1", "10.0.0.2"]


class TestClearOwn:
    def test_clear_then_find(self, tmp_path):
        store = DiscoveryStore(str(tmp_path))
        published = store.publish_all(["10.0.0.1", "172.16.0.4"], 12345)
        store.clear_own(published)
        assert store.find_latest() is None

    def test_leaves_other_records(self, tmp_path):
        store = DiscoveryStore(str(tmp_path))
        store.publish("10.0.0.1", 1)
        store.publish("10.0.0.2", 2)
        store.clear_own(["10.0.0.1"])
        assert store.find_latest().address == "10.0.0.2"

    def test_missing_records_are_ignored(self, tmp_path):
        DiscoveryStore(str(tmp_path / "gone")).clear_own(["10.0.0.1"])
