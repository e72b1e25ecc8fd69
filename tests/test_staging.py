"""스테이징 디렉토리 테스트"""

import pytest

from db_sync.exceptions import StagingError
from db_sync.staging import StagingArea, filter_tables


class TestFilterTables:
    """블랙리스트 필터링 테스트"""

    def test_removes_blacklisted_and_keeps_order(self):
        raw = ["users", "schema_migrations", "orders", "repli_chk"]

        assert filter_tables(raw) == ["users", "orders"]

    def test_removes_repli_clock(self):
        assert filter_tables(["repli_clock", "events"]) == ["events"]

    def test_skips_blank_lines_and_duplicates(self):
        raw = ["users", "", "  ", "orders", "users"]

        assert filter_tables(raw) == ["users", "orders"]

    def test_custom_blacklist(self):
        assert filter_tables(["a", "b", "c"], frozenset({"b"})) == ["a", "c"]


class TestStagingArea:
    """StagingArea 테스트"""

    def test_directory_name_from_timestamp(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1700000000)

        path = staging.create()

        assert path == tmp_path / "db_sync_1700000000"
        assert path.is_dir()
        assert staging.listing_path == path / "app_list.txt"
        assert staging.dump_path("users") == path / "app_users.txt"

    def test_different_start_times_do_not_collide(self, tmp_path):
        first = StagingArea(tmp_path, "app", started_at=1700000000)
        second = StagingArea(tmp_path, "app", started_at=1700000001)

        first.create()
        second.create()

        assert first.path != second.path
        assert first.path.is_dir() and second.path.is_dir()

    def test_existing_directory_is_not_reused(self, tmp_path):
        StagingArea(tmp_path, "app", started_at=1700000000).create()

        with pytest.raises(StagingError):
            StagingArea(tmp_path, "app", started_at=1700000000).create()

    def test_create_fails_when_base_is_a_file(self, tmp_path):
        base = tmp_path / "not_a_dir"
        base.write_text("x")

        with pytest.raises(StagingError):
            StagingArea(base, "app", started_at=1).create()

    def test_listing_is_filtered_on_read(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1)
        staging.create()
        staging.write_listing(b"customers\nschema_migrations\norders\n")

        assert staging.listing_path.read_bytes() == b"customers\nschema_migrations\norders\n"
        assert staging.read_listing_lines() == ["customers", "orders"]
        assert staging.read_listing_lines() == ["customers", "orders"]

    def test_dump_round_trip_is_byte_exact(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1)
        staging.create()
        raw = b"1\tAlice\t\\N\n2\tB\xc3\xb6b\t2024-01-01\n"

        staging.write_table_dump("users", raw)

        assert staging.read_table_dump("users") == raw

    def test_file_is_written_only_once(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1)
        staging.create()
        staging.write_table_dump("users", b"a")

        with pytest.raises(StagingError):
            staging.write_table_dump("users", b"b")
        assert staging.read_table_dump("users") == b"a"

    def test_missing_dump(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1)
        staging.create()

        with pytest.raises(FileNotFoundError):
            staging.read_table_dump("users")

    def test_destroy_removes_directory(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1)
        staging.create()
        staging.write_listing(b"users\n")

        assert staging.destroy() is True
        assert not staging.path.exists()
        assert staging.destroy() is False

    def test_destroy_keeps_directory_it_did_not_create(self, tmp_path):
        owner = StagingArea(tmp_path, "app", started_at=1)
        owner.create()
        owner.write_listing(b"users\n")
        other = StagingArea(tmp_path, "app", started_at=1)

        with pytest.raises(StagingError):
            other.create()

        assert other.destroy() is False
        assert owner.listing_path.exists()

    def test_non_utf8_table_names_are_preserved(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1)
        staging.create()
        staging.write_listing(b"caf\xe9\norders\n")

        tables = staging.read_listing_lines()

        assert tables == ["caf\udce9", "orders"]
        assert tables[0].encode("utf-8", errors="surrogateescape") == b"caf\xe9"

    def test_missing_listing_raises_staging_error(self, tmp_path):
        staging = StagingArea(tmp_path, "app", started_at=1)
        staging.create()

        with pytest.raises(StagingError, match="테이블 목록"):
            staging.read_listing_lines()
