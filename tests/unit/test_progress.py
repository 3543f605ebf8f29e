from __future__ import annotations

from unittest.mock import Mock, patch

from patrimony.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    def test_init_with_tty_enabled(self):
        with patch("patrimony.services.progress.is_tty_enabled", return_value=True), \
             patch("patrimony.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(5, description="Importing inv.csv")

            assert tracker.total == 5
            assert tracker.done == 0
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Importing inv.csv",
                unit="item",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch("patrimony.services.progress.is_tty_enabled", return_value=False):
            tracker = ProgressTracker(5)
            assert tracker.enabled is False
            assert tracker.pbar is None

    def test_advance_updates_bar(self):
        mock_pbar = Mock()
        with patch("patrimony.services.progress.is_tty_enabled", return_value=True), \
             patch("patrimony.services.progress.tqdm", return_value=mock_pbar):
            tracker = ProgressTracker(10)
            tracker.advance(4)
            tracker.advance()
            assert tracker.done == 5
            assert [c.args for c in mock_pbar.update.call_args_list] == [(4,), (1,)]

    def test_advance_without_tty_only_counts(self):
        with patch("patrimony.services.progress.is_tty_enabled", return_value=False):
            tracker = ProgressTracker(10)
            tracker.advance(3)
            tracker.set_postfix(stored=3)
            assert tracker.done == 3

    def test_set_postfix_with_tty_enabled(self):
        mock_pbar = Mock()
        with patch("patrimony.services.progress.is_tty_enabled", return_value=True), \
             patch("patrimony.services.progress.tqdm", return_value=mock_pbar):
            tracker = ProgressTracker(3)
            tracker.set_postfix(stored=2)
            mock_pbar.set_postfix.assert_called_once_with(stored=2)

    def test_context_manager_closes_once(self):
        mock_pbar = Mock()
        with patch("patrimony.services.progress.is_tty_enabled", return_value=True), \
             patch("patrimony.services.progress.tqdm", return_value=mock_pbar):
            with ProgressTracker(3) as tracker:
                assert isinstance(tracker, ProgressTracker)
            tracker.close()
            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None
