from sqlalchemy import create_engine, inspect

from guardshift.migration_runner import run_migrations_once


def test_migrations_build_the_shift_schema(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"

    run_migrations_once(url)
    run_migrations_once(url)

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert {"customers", "sites", "workers", "shifts", "shift_assignments"} <= set(inspector.get_table_names())
        columns = {column["name"] for column in inspector.get_columns("shift_assignments")}
        assert {"actual_hours", "check_in_latitude", "reminder_sent_at", "overdue_alerted_at"} <= columns
        unique = {constraint["name"] for constraint in inspector.get_unique_constraints("shift_assignments")}
        assert "uq_shift_assignment_worker" in unique
    finally:
        engine.dispose()
