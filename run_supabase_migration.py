#!/usr/bin/env python3
"""Check the design_items table exists, printing its DDL if it does not."""
import sys

from design_manager.core.config import get_settings
from design_manager.db.supabase_client import design_items_table

DESIGN_ITEMS_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    id UUID PRIMARY KEY,
    project_id UUID,
    item_code TEXT NOT NULL DEFAULT '',
    name TEXT NOT NULL,
    sourcing_type TEXT NOT NULL DEFAULT 'MANUFACTURED',
    current_stage TEXT NOT NULL,
    rag_status JSONB NOT NULL DEFAULT '{{}}'::jsonb,
    overall_readiness INTEGER NOT NULL DEFAULT 0,
    stage_history JSONB NOT NULL DEFAULT '[]'::jsonb,
    stage_entered_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ DEFAULT now(),
    created_by TEXT,
    updated_at TIMESTAMPTZ DEFAULT now(),
    updated_by TEXT,
    version INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_{table}_project_stage ON {table} (project_id, current_stage);

COMMENT ON COLUMN {table}.overall_readiness IS 'Derived from rag_status on every save; never edited directly';
COMMENT ON COLUMN {table}.version IS 'Optimistic concurrency token, incremented on every save';
"""


def run_migration():
    table = get_settings().DESIGN_ITEMS_TABLE

    try:
        print(f"🔍 Checking {table} table...")
        design_items_table().select("id, version").limit(1).execute()
        print("✅ Table exists")

    except Exception as e:
        print(f"❌ Check failed: {e}")
        print("💡 Run this SQL in your Supabase SQL editor:")
        print(DESIGN_ITEMS_DDL.format(table=table))
        sys.exit(1)


if __name__ == "__main__":
    run_migration()
