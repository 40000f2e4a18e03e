"""Database population and verification scripts.

| Script | Purpose |
|--------|---------|
| `populate_database.py` | Idempotently seeds users, authors, books, reviews, reservations |
| `verify_database.py` | Counts, samples and cross-checks the library collections |
| `seed_all.py` | Runs populate then verify |

Usage:
    populate-database --env-file server/.env
    verify-database
    seed-all
"""
