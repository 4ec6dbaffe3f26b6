import psycopg2

from insights.config import Config

# Bookkeeping table for insight refresh runs. The IndustryInsight table itself
# (and its DemandLevel / MarketOutlook enums) is owned by the application schema.
MIGRATION_SQL = f"""
-- Migration: Create execution reports table
CREATE TABLE IF NOT EXISTS {Config.EXECUTION_REPORTS_TABLE} (
    id BIGSERIAL PRIMARY KEY,
    trigger TEXT,
    run_status TEXT,
    start_time TIMESTAMP WITHOUT TIME ZONE,
    end_time TIMESTAMP WITHOUT TIME ZONE,
    duration_seconds DOUBLE PRECISION,
    industries_total INTEGER,
    industries_updated INTEGER,
    industries_failed INTEGER,
    failed_industries JSONB,
    api_calls_gemini INTEGER,
    gemini_input_tokens INTEGER,
    gemini_output_tokens INTEGER,
    gemini_total_tokens INTEGER,
    error_summary JSONB
);

CREATE INDEX IF NOT EXISTS idx_{Config.EXECUTION_REPORTS_TABLE}_start_time ON {Config.EXECUTION_REPORTS_TABLE}(start_time);
CREATE INDEX IF NOT EXISTS idx_{Config.EXECUTION_REPORTS_TABLE}_run_status ON {Config.EXECUTION_REPORTS_TABLE}(run_status);
"""


def _connection_kwargs():
    if Config.POSTGRES_CONNECTION_STRING:
        return {"dsn": Config.POSTGRES_CONNECTION_STRING}
    return {
        "host": Config.POSTGRES_HOST, "port": Config.POSTGRES_PORT, "dbname": Config.POSTGRES_DB,
        "user": Config.POSTGRES_USER, "password": Config.POSTGRES_PASSWORD,
    }


def run_migration(migration_sql):
    conn = None
    try:
        conn = psycopg2.connect(**_connection_kwargs())
        with conn.cursor() as cur:
            cur.execute(migration_sql)
        conn.commit()
        print("Migration applied successfully.")
    except psycopg2.Error as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        if conn is not None:
            conn.close()


if __name__ == "__main__":
    run_migration(MIGRATION_SQL)
