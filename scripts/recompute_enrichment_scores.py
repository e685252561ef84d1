from __future__ import annotations

import argparse

from better_contacts.core.logging import configure_logging
from better_contacts.db.pg.base import Base
from better_contacts.db.pg.session import engine
from better_contacts.workers.jobs import recompute_scores


def main() -> None:
    parser = argparse.ArgumentParser(description="Recompute persisted contact enrichment scores.")
    parser.add_argument("--user-id", default=None, help="Only recompute contacts owned by this user.")
    args = parser.parse_args()

    configure_logging()
    Base.metadata.create_all(bind=engine)
    result = recompute_scores(args.user_id)
    if not result["contact_count"]:
        print("No contacts found")
        return
    print(f"Recomputed {result['contact_count']} contacts ({result['changed_count']} changed)")


if __name__ == "__main__":
    main()
