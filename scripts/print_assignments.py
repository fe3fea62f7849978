import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import json
import logging

from rental_payments.db.engine import engine
from rental_payments.logging_config import setup_logging
from rental_payments.services.assignment import (
    load_registries,
    resolve_all_with_accounts,
    resolve_available_accounts,
    resolve_without_accounts,
)

setup_logging()
logger = logging.getLogger(__name__)

VIEWS = {
    "all": resolve_all_with_accounts,
    "available": resolve_available_accounts,
    "unassigned": resolve_without_accounts,
}


def main() -> None:
    """
    Print one resolver view as JSON, read straight from DATABASE_URL.
    """
    parser = argparse.ArgumentParser(description=main.__doc__)
    parser.add_argument("view", choices=sorted(VIEWS), nargs="?", default="all")
    args = parser.parse_args()

    with engine.connect() as conn:
        properties, accounts = load_registries(conn)

    results = VIEWS[args.view](properties, accounts)
    logger.info("Resolved %s properties for view=%s", len(results), args.view)
    print(json.dumps(results, indent=2, default=str))


if __name__ == "__main__":
    main()
