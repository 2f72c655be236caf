from __future__ import annotations

import argparse
from decimal import Decimal

from sqlalchemy import create_engine, delete, insert
from sqlalchemy.engine import make_url

from bookings_api.infrastructure.db.models import ServiceProModel
from bookings_api.infrastructure.db.session import build_database_url
from bookings_api.shared.config.settings import settings

DEV_PROS = (
    {
        "pro_id": "pro-dev-plumber",
        "display_name": "Dev Plumbing Co",
        "starting_price": Decimal("150.00"),
        "stripe_account_id": None,
        "stripe_charges_enabled": False,
    },
    {
        "pro_id": "pro-dev-electrician",
        "display_name": "Dev Electric",
        "starting_price": Decimal("100.00"),
        "stripe_account_id": "acct_dev_electrician",
        "stripe_charges_enabled": True,
    },
)


def _sync_database_url() -> str:
    url = make_url(build_database_url(settings))
    drivername = url.drivername.replace("aiomysql", "pymysql").replace("aiosqlite", "pysqlite")
    return url.set(drivername=drivername).render_as_string(hide_password=False)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed service pros for local development.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete the seeded pros before inserting them again.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    table = ServiceProModel.__table__
    pro_ids = [row["pro_id"] for row in DEV_PROS]
    engine = create_engine(_sync_database_url(), pool_pre_ping=True)
    try:
        with engine.begin() as connection:
            if args.reset:
                connection.execute(delete(table).where(table.c.pro_id.in_(pro_ids)))
            existing = {
                row.pro_id
                for row in connection.execute(table.select().where(table.c.pro_id.in_(pro_ids)))
            }
            rows = [row for row in DEV_PROS if row["pro_id"] not in existing]
            if rows:
                connection.execute(insert(table), rows)
    finally:
        engine.dispose()

    print(f"Seeded {len(rows)} service pro(s).")


if __name__ == "__main__":
    main()
