"""崩溃标记测试."""

import pytest

from vocalog.marker import CrashMarker


@pytest.fixture
def marker(tmp_path):
    return CrashMarker(tmp_path / "CrashMarker.txt")


class TestCrashMarker:
    def test_absent_marker_consumes_nothing(self, marker):
        assert marker.consume_if_present() is None

    def test_write_then_consume(self, marker):
        marker.write_new("v1")
        assert marker.exists()
        assert marker.path.read_text(encoding="utf-8") == "v1"

        assert marker.consume_if_present() == "v1"
        assert not marker.exists()

    def test_consumed_at_most_once(self, marker):
        marker.write_new("v1")
        assert marker.consume_if_present() == "v1"
        assert marker.consume_if_present() is None

    def test_write_overwrites(self, marker):
        marker.write_new("v1")
        marker.write_new("v2")
        assert marker.consume_if_present() == "v2"

    def test_only_first_line_trimmed(self, marker):
        marker.path.write_text("  v1.2  \nextra\n", encoding="utf-8")
        assert marker.consume_if_present() == "v1.2"

    def test_bom_tolerated(self, marker):
        marker.path.write_bytes(b"\xef\xbb\xbfv3")
        assert marker.peek() == "v3"

    def test_peek_does_not_delete(self, marker):
        marker.write_new("v1")
        assert marker.peek() == "v1"
        assert marker.exists()

    def test_remove_missing_is_fine(self, marker):
        marker.remove()
        marker.write_new("v1")
        marker.remove()
        assert not marker.exists()

    def test_write_into_missing_folder_raises(self, tmp_path):
        marker = CrashMarker(tmp_path / "missing" / "CrashMarker.txt")
        with pytest.raises(OSError):
            marker.write_new("v1")
