"""
One-off provisioning for the Supabase backend.

    python -m sitedrop.setup_db

Creating tables needs admin access, so the ``sites`` DDL is printed for the
SQL editor; the public storage bucket is created directly.
"""
from __future__ import annotations

import asyncio
import logging
import sys

import httpx

from sitedrop.config import settings
from sitedrop.storage.supabase import SupabaseClient

logger = logging.getLogger(__name__)

SITES_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
  id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
  slug text UNIQUE NOT NULL,
  main_file text NOT NULL DEFAULT 'index.html',
  file_count integer DEFAULT 1,
  total_size bigint DEFAULT 0,
  created_at timestamptz DEFAULT now()
);

ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;

CREATE POLICY "Anyone can create sites"
  ON {table}
  FOR INSERT
  TO anon
  WITH CHECK (true);

CREATE POLICY "Anyone can view sites"
  ON {table}
  FOR SELECT
  TO anon
  USING (true);

CREATE INDEX IF NOT EXISTS idx_{table}_slug ON {table}(slug);
CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table}(created_at DESC);
"""


def sites_ddl(table: str = "sites") -> str:
    return SITES_DDL.format(table=table)


async def main() -> int:
    if not settings.supabase_url or not settings.supabase_key:
        logger.error("SUPABASE_URL and SUPABASE_KEY must be set (environment or .env)")
        return 1

    print("Create the table in the Supabase SQL editor:")
    print(sites_ddl(settings.sites_table))

    client = SupabaseClient()
    try:
        created = await client.ensure_bucket(settings.max_upload_bytes)
    except httpx.HTTPError as exc:
        logger.error("Error creating bucket: %s", exc)
        return 1

    if created:
        logger.info("Storage bucket %s created", client.bucket)
    else:
        logger.info("Storage bucket %s already exists", client.bucket)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")
    sys.exit(asyncio.run(main()))
