"""User settings stored in the database."""
from study_planner.db import get_connection

DEFAULT_TARGET_STUDY_MINUTES = 120


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_target_study_minutes(db_path: str) -> int:
    value = get_setting(db_path, "target_study_minutes_per_day")
    if not value:
        return DEFAULT_TARGET_STUDY_MINUTES
    return int(value)


def set_target_study_minutes(db_path: str, minutes: int) -> None:
    if minutes <= 0:
        raise ValueError("Daily study target must be positive")
    set_setting(db_path, "target_study_minutes_per_day", str(minutes))
