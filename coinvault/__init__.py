"""
Coinvault — Coin Economy Core for a Gamified Community Platform
================================================================
Owns the per-user coin balance, the append-only coin transaction ledger,
and the two workflows that move coins: challenge participation payouts and
reward-shop claims.  Every balance change commits together with its ledger
row and with the status/stock change that caused it.

Package layout::

    coinvault/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # User-visible messages, ledger descriptions
    ├── errors.py          # Error taxonomy + ActionResult boundary
    ├── __main__.py        # CLI: init-db, reconcile
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helpers
    │   └── models.py      # ORM models (users, coins, challenges, rewards)
    ├── engine/
    │   └── transitions.py # Claim / participation state machines
    ├── services/
    │   ├── auth_gate.py          # Authentication + reviewer authorization
    │   ├── ledger_service.py     # Atomic credit/debit + transaction log
    │   ├── stock_service.py      # Atomic reward stock counter
    │   ├── challenge_service.py  # Participation engine + challenge admin
    │   ├── claim_service.py      # Reward claim engine
    │   ├── grant_service.py      # Manual coin grants
    │   ├── catalog_service.py    # Reward catalog admin (audited)
    │   ├── wallet_service.py     # Balance + history summary
    │   ├── audit.py              # admin_log helpers
    │   ├── notifier.py           # Fire-and-forget notifications
    │   └── reconciliation_service.py  # Balance vs. ledger drift report
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT → Identity, engine, config
        ├── results.py     # ActionResult → HTTP status + body
        └── routes/        # Challenge, reward, admin, wallet endpoints
"""

__version__ = "0.1.0"
