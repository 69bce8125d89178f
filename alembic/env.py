from logging.config import fileConfig
import os

from sqlalchemy import engine_from_config, pool
from alembic import context

# Alembic config
config = context.config

# Logging (tests pass configure_logger=False to keep pytest's handlers)
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# --- Your models ---
from database import Base
from config import settings
import models  # noqa: F401  (ensure models import registers all tables)

target_metadata = Base.metadata


# URL: alembic.ini / -x db_url=... / DATABASE_URL / Settings
def get_url() -> str:
    url = config.get_main_option("sqlalchemy.url", "")
    if not url:
        x_args = context.get_x_argument(as_dictionary=True)
        url = x_args.get("db_url") or os.getenv("DATABASE_URL", "") or settings.DATABASE_URL
        # ConfigParser interpolation: % ใน password ต้อง escape
        config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return url


def include_object(object, name, type_, reflected, compare_to):
    # Skip Alembic's version table in autogenerate diffs
    if type_ == "table" and name == "alembic_version":
        return False
    return True


def _configure(connection, **kw):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        include_object=include_object,
        render_as_batch=connection.dialect.name == "sqlite",
        **kw,
    )


def run_migrations_offline() -> None:
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
        include_object=include_object,
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    get_url()
    section = config.get_section(config.config_ini_section) or {}
    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        if connection.dialect.name == "sqlite":
            # batch mode สร้างตารางใหม่แล้ว DROP ตารางเดิม; ถ้าเปิด FK อยู่จะ cascade ลบข้อมูลลูก
            connection.exec_driver_sql("PRAGMA foreign_keys=OFF")
            connection.commit()

        _configure(connection)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
