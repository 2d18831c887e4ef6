import os
import shutil
import sys

import pytest

linux_only = pytest.mark.skipif(
    not sys.platform.startswith("linux") or shutil.which("stat") is None,
    reason="needs GNU coreutils",
)


class TestFormat:
    def test_epoch(self):
        from dirsitemap.mtime import format_w3c

        assert format_w3c(0) == "1970-01-01T00:00:00+00:00"
        assert format_w3c(1700000000.9) == "2023-11-14T22:13:20+00:00"


class TestProbe:
    def test_auto_prefers_os_stat(self, tmp_path):
        from dirsitemap.mtime import probe_mtime_reader

        assert probe_mtime_reader(tmp_path).name == "os-stat"

    def test_reader_formats_file_time(self, tmp_path):
        from dirsitemap.mtime import probe_mtime_reader

        path = tmp_path / "a.html"
        path.write_text("x")
        os.utime(path, (1700000000, 1700000000))

        assert probe_mtime_reader(tmp_path)(path) == "2023-11-14T22:13:20+00:00"

    @linux_only
    def test_gnu_stat_matches_os_stat(self, tmp_path):
        from dirsitemap.mtime import gnu_stat_epoch, os_stat_epoch, probe_mtime_reader

        path = tmp_path / "a.html"
        path.write_text("x")

        assert probe_mtime_reader(tmp_path, "gnu-stat").name == "gnu-stat"
        assert gnu_stat_epoch(path) == os_stat_epoch(path)

    @linux_only
    def test_bsd_stat_rejected_on_linux(self, tmp_path):
        from dirsitemap.errors import MtimeMethodError
        from dirsitemap.mtime import probe_mtime_reader

        with pytest.raises(MtimeMethodError) as info:
            probe_mtime_reader(tmp_path, "bsd-stat")
        assert info.value.exit_code == 7

    def test_no_method_available(self, tmp_path, monkeypatch):
        from dirsitemap import mtime

        def broken(path):
            raise OSError("no stat here")

        monkeypatch.setattr(mtime, "READERS", (mtime.MtimeReader("broken", broken),))

        with pytest.raises(mtime.MtimeMethodError):
            mtime.probe_mtime_reader(tmp_path)

    def test_missing_file_after_lock_in(self, tmp_path):
        from dirsitemap.errors import MtimeReadError
        from dirsitemap.mtime import probe_mtime_reader

        reader = probe_mtime_reader(tmp_path)

        with pytest.raises(MtimeReadError):
            reader(tmp_path / "gone.html")

    @linux_only
    def test_ls_matches_os_stat(self, tmp_path):
        from dirsitemap.mtime import ls_epoch, os_stat_epoch

        path = tmp_path / "a b.html"
        path.write_text("x")
        os.utime(path, (1700000000, 1700000000))

        assert ls_epoch(path) == os_stat_epoch(path) == 1700000000
