# manage.py
"""
python manage.py upgrade [rev]        -> alembic upgrade (default head)
python manage.py downgrade <rev>      -> alembic downgrade
python manage.py current | history
python manage.py seed [--no-samples]  -> bootstrap + sample data (รันซ้ำได้)
python manage.py check                -> integrity report (exit 1 ถ้ามีปัญหา)
"""
import argparse
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

from config import settings

logger = logging.getLogger("manage")

BASE_DIR = Path(__file__).resolve().parent


def alembic_config(db_url: str = None, backfill_policy: str = None) -> Config:
    cfg = Config(str(BASE_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BASE_DIR / "alembic"))
    url = db_url or settings.DATABASE_URL
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    if backfill_policy:
        cfg.attributes["backfill_policy"] = backfill_policy
    return cfg


def cmd_upgrade(args):
    command.upgrade(alembic_config(args.db_url, args.backfill_policy), args.revision)


def cmd_downgrade(args):
    command.downgrade(alembic_config(args.db_url), args.revision)


def cmd_current(args):
    command.current(alembic_config(args.db_url), verbose=True)


def cmd_history(args):
    command.history(alembic_config(args.db_url), verbose=False)


def cmd_seed(args):
    from database import make_engine, session_scope
    from services.seed import run_all

    eng = make_engine(args.db_url or settings.DATABASE_URL)
    with session_scope(eng) as db:
        report = run_all(db, include_samples=not args.no_samples)
    for line in report.lines():
        print(line)
    return 0


def cmd_check(args):
    from database import make_engine
    from models import ALL_TABLES
    from utils.schema_inspect import integrity_report, report_has_problems

    eng = make_engine(args.db_url or settings.DATABASE_URL)
    with eng.connect() as conn:
        report = integrity_report(conn, ALL_TABLES)
    for key, value in report.items():
        print(f"{key}: {value}")
    if report_has_problems(report):
        logger.warning("integrity check found problems")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="manage.py", description="Crusher logistics DB tools")
    p.add_argument("--db-url", default=None, help="override DATABASE_URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    up = sub.add_parser("upgrade", help="migrate to a revision (default head)")
    up.add_argument("revision", nargs="?", default="head")
    up.add_argument("--backfill-policy", choices=["strict", "best_effort"], default=None)
    up.set_defaults(func=cmd_upgrade)

    down = sub.add_parser("downgrade", help="migrate down to a revision")
    down.add_argument("revision")
    down.set_defaults(func=cmd_downgrade)

    sub.add_parser("current", help="show applied revision").set_defaults(func=cmd_current)
    sub.add_parser("history", help="list revisions").set_defaults(func=cmd_history)

    seed = sub.add_parser("seed", help="insert bootstrap and sample rows")
    seed.add_argument("--no-samples", action="store_true", help="bootstrap rows only")
    seed.set_defaults(func=cmd_seed)

    sub.add_parser("check", help="integrity report").set_defaults(func=cmd_check)
    return p


def main(argv=None) -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)-5.5s [%(name)s] %(message)s",
    )
    args = build_parser().parse_args(argv)
    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
