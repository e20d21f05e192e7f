"""Rebuild unposted auto-generated journal entries for every tenant (or one).

    python scripts/regenerate_journal_entries.py --start 2026-01-01 --end 2026-01-31
    python scripts/regenerate_journal_entries.py --start 2026-01-01 --end 2026-01-31 --tenant quarry-1
"""
import argparse
import logging
import os
import sys
from datetime import date

from dotenv import load_dotenv

load_dotenv()

# Add the parent directory to sys.path to allow imports from backend
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import sessionmaker
from database import engine
from crud import journal_generation
from models.banking import Banking
from models.expenses import Expense
from models.fuel_usage import FuelUsage
from models.journal_entry import JournalEntry
from models.prepayments import Prepayment
from models.sales import Sale

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("regenerate_journal_entries")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def discover_tenants(db):
    tenant_ids = set()
    for model in [Sale, Expense, Banking, FuelUsage, Prepayment, JournalEntry]:
        for (tenant_id,) in db.query(model.tenant_id).distinct():
            if tenant_id:
                tenant_ids.add(tenant_id)
    return sorted(tenant_ids)


def regenerate(start_date: date, end_date: date, tenant_id: str = None):
    db = SessionLocal()
    failures = 0
    try:
        tenant_ids = [tenant_id] if tenant_id else discover_tenants(db)
        logger.info(f"Regenerating {start_date} to {end_date} for tenants: {tenant_ids}")
        for tenant in tenant_ids:
            try:
                result = journal_generation.regenerate_auto_entries(db, tenant, start_date, end_date)
                logger.info(f"Tenant {tenant}: {result}")
            except Exception as e:
                db.rollback()
                logger.error(f"Tenant {tenant} failed: {e}")
                failures += 1
    finally:
        db.close()
    return failures


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--start", required=True, type=date.fromisoformat, help="first entry date (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, type=date.fromisoformat, help="last entry date (YYYY-MM-DD)")
    parser.add_argument("--tenant", help="limit to one tenant id")
    args = parser.parse_args(argv)

    if args.end < args.start:
        parser.error("--end must not be before --start")
    failures = regenerate(args.start, args.end, args.tenant)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
