"""日志轮转测试."""

import pytest

from vocalog.roller import generation_path, list_generations, roll_logs


@pytest.fixture
def base(tmp_path):
    return tmp_path / "Main.log"


def _write(path, text):
    path.write_text(text, encoding="utf-8")


class TestRollLogs:
    def test_current_log_becomes_generation_one(self, base):
        _write(base, "run-1")
        roll_logs(base, 2)

        assert not base.exists()
        assert generation_path(base, 1).read_text(encoding="utf-8") == "run-1"

    def test_generations_shift_and_oldest_discarded(self, base):
        _write(base, "run-3")
        _write(generation_path(base, 1), "run-2")
        _write(generation_path(base, 2), "run-1")

        roll_logs(base, 2)

        assert not base.exists()
        assert generation_path(base, 1).read_text(encoding="utf-8") == "run-3"
        assert generation_path(base, 2).read_text(encoding="utf-8") == "run-2"
        assert not generation_path(base, 3).exists()

    def test_missing_files_are_skipped(self, base):
        roll_logs(base, 2)
        assert list_generations(base) == []

    def test_gap_in_generations(self, base):
        """只有 .1 没有当前日志: .1 移到 .2."""
        _write(generation_path(base, 1), "old")
        roll_logs(base, 2)
        assert [g for g, _ in list_generations(base)] == [2]

    def test_retain_zero_deletes_current(self, base):
        _write(base, "x")
        roll_logs(base, 0)
        assert not base.exists()
        assert list_generations(base) == []

    def test_retain_zero_discards_all_generations(self, base):
        for g in (0, 1, 2):
            _write(generation_path(base, g), str(g))
        roll_logs(base, 0)
        assert list_generations(base) == []

    def test_generations_beyond_retain_are_discarded(self, base):
        """调低保留代数后，遗留的 .3 不会继续存在."""
        for g in (0, 1, 2, 3):
            _write(generation_path(base, g), f"gen-{g}")

        roll_logs(base, 2)

        assert [g for g, _ in list_generations(base)] == [1, 2]
        assert generation_path(base, 1).read_text(encoding="utf-8") == "gen-0"
        assert generation_path(base, 2).read_text(encoding="utf-8") == "gen-1"

    def test_lowering_retain_trims_existing_generations(self, base):
        for g in (0, 1, 2):
            _write(generation_path(base, g), f"gen-{g}")

        roll_logs(base, 1)

        assert [g for g, _ in list_generations(base)] == [1]
        assert generation_path(base, 1).read_text(encoding="utf-8") == "gen-0"

    def test_negative_retain_rejected(self, base):
        with pytest.raises(ValueError):
            roll_logs(base, -1)

    def test_repeated_rolls_are_bounded(self, base):
        for i in range(5):
            _write(base, f"run-{i}")
            roll_logs(base, 2)

        assert [g for g, _ in list_generations(base)] == [1, 2]
        assert generation_path(base, 1).read_text(encoding="utf-8") == "run-4"
        assert generation_path(base, 2).read_text(encoding="utf-8") == "run-3"

    def test_other_files_untouched(self, base, tmp_path):
        _write(base, "x")
        other = tmp_path / "Main.log.bak"
        _write(other, "keep")
        roll_logs(base, 2)
        assert other.read_text(encoding="utf-8") == "keep"


class TestListGenerations:
    def test_sorted_by_generation(self, base):
        for g in (2, 0, 1):
            _write(generation_path(base, g), str(g))
        assert [g for g, _ in list_generations(base)] == [0, 1, 2]

    def test_non_numeric_suffix_ignored(self, base, tmp_path):
        _write(tmp_path / "Main.log.old", "x")
        assert list_generations(base) == []

    def test_missing_folder(self, tmp_path):
        assert list_generations(tmp_path / "nope" / "Main.log") == []
