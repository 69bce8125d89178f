import sqlalchemy as sa

import manage
from conftest import execute_sql, migrate
from models import ALL_TABLES
from services.legacy_backfill import plan_material_merge
from utils.schema_inspect import find_duplicate_groups, integrity_report, report_has_problems


def test_plan_material_merge_keeps_lowest_id():
    rows = [(1, "SAND"), (2, "GRAVEL"), (3, "SAND"), (5, "SAND"), (7, "GRAVEL")]
    assert plan_material_merge(rows) == {3: 1, 5: 1, 7: 2}
    assert plan_material_merge([(1, "SAND")]) == {}


def test_find_duplicate_groups_ignores_null(db_url):
    migrate(db_url, "20250415_0002")
    execute_sql(
        db_url,
        "INSERT INTO \"Customers\" (id, name, gst_no) VALUES (1, 'A', 'X'), (2, 'B', NULL), "
        "(3, 'C', 'X'), (4, 'D', NULL), (5, 'E', 'Y')",
    )
    eng = sa.create_engine(db_url)
    with eng.connect() as conn:
        assert find_duplicate_groups(conn, "Customers", "gst_no") == {"X": [1, 3]}
    eng.dispose()


def test_integrity_report_clean_at_head(migrated_url):
    eng = sa.create_engine(migrated_url)
    with eng.connect() as conn:
        report = integrity_report(conn, ALL_TABLES)
    eng.dispose()
    assert report["missing_tables"] == []
    assert report["null_input_qty"] == 0
    assert not report_has_problems(report)


def test_integrity_report_before_migrating(db_url):
    migrate(db_url, "20250414_0001")
    eng = sa.create_engine(db_url)
    with eng.connect() as conn:
        report = integrity_report(conn, ALL_TABLES)
    eng.dispose()
    assert "Dispatches" in report["missing_tables"]
    assert report_has_problems(report)


def test_cli_upgrade_seed_check(db_url, capsys):
    assert manage.main(["--db-url", db_url, "upgrade"]) == 0
    assert manage.main(["--db-url", db_url, "seed"]) == 0
    out = capsys.readouterr().out
    assert "sample_materials: created=3 skipped=0" in out

    assert manage.main(["--db-url", db_url, "seed", "--no-samples"]) == 0
    out = capsys.readouterr().out
    assert "super_admin: created=0 skipped=1" in out

    assert manage.main(["--db-url", db_url, "check"]) == 0
