from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from bant_scoring.core.config import settings
from bant_scoring.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Migrations run on the synchronous psycopg2 driver
sync_url = make_url(settings.DATABASE_URL).set(drivername="postgresql+psycopg2")
config.set_main_option(
    "sqlalchemy.url", sync_url.render_as_string(hide_password=False)
)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):
    # leads belongs to the host application; only its read-only mapping lives here
    if type_ == "table" and name == "leads":
        return False
    return True


def run_migrations_offline():
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
