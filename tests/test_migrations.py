"""Tests for the settings table migration."""

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from marking_tree.model import metadata

VERSIONS = Path(__file__).parents[1] / "src" / "marking_tree" / "alembic" / "versions"
OWNED_TABLES = {"marking_settings", "marking_group_settings"}


def load_migration(filename):
    spec = importlib.util.spec_from_file_location(filename[:-3], VERSIONS / filename)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def connection():
    engine = create_engine("sqlite://")
    host_tables = [table for name, table in metadata.tables.items() if name not in OWNED_TABLES]
    metadata.create_all(engine, tables=host_tables)
    with engine.begin() as connection:
        yield connection


@pytest.mark.integration
class TestSettingsMigration:
    """The migration and the declarative model describe the same tables."""

    def test_upgrade_matches_model(self, connection):
        migration = load_migration("3f1c9a7d2b40_add_marking_settings.py")

        with Operations.context(MigrationContext.configure(connection)):
            migration.upgrade()

        inspector = inspect(connection)
        for name in OWNED_TABLES:
            migrated = {column["name"] for column in inspector.get_columns(name)}
            assert migrated == set(metadata.tables[name].columns.keys())

    def test_downgrade_drops_tables(self, connection):
        migration = load_migration("3f1c9a7d2b40_add_marking_settings.py")

        with Operations.context(MigrationContext.configure(connection)):
            migration.upgrade()
            migration.downgrade()

        assert not OWNED_TABLES & set(inspect(connection).get_table_names())
