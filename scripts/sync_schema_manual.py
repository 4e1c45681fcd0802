#!/usr/bin/env python3
"""Create or update the whatnow PocketBase collections."""

import asyncio
import logging

from whatnow.core.config import settings
from whatnow.core.schema import COLLECTIONS, sync_schema


async def main() -> None:
    admin_email = settings.require_credential("pocketbase_admin_email", "PocketBase admin email")
    admin_password = settings.require_credential("pocketbase_admin_password", "PocketBase admin password")

    await sync_schema(admin_email=admin_email, admin_password=admin_password)
    print(f"Synced {len(COLLECTIONS)} collections at {settings.pocketbase_url}")  # noqa: T201


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
