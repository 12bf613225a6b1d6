# credit_ledger.py — the only writer of accounts.credits / accounts.last_credit_regeneration
#
# Rules:
# - 0 <= credits <= MAX_CREDITS, always
# - spending is deduct-if-sufficient in ONE conditional write (never read-then-write)
# - +REGEN_AMOUNT once per REGEN_INTERVAL, capped at MAX_CREDITS, applied lazily on reads
#   (no scheduler); the staleness gate is part of the same conditional write

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import db
from errors import AccountNotFound, ContentionError

# ----------------------------- Tunables -----------------------------

MAX_CREDITS = 1000
REGEN_AMOUNT = 100
REGEN_INTERVAL = timedelta(hours=24)

# Attempts per conditional write before giving up (each miss = someone else wrote first)
CAS_ATTEMPTS = 8


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value) -> Optional[datetime]:
    """
    Robust parse for timestamptz coming back from Supabase.
    Expects ISO strings like '2025-12-02T15:30:12.345678+00:00' or '...Z'.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        ts = datetime.fromisoformat(value)
    except ValueError:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Account:
    user_id: str
    credits: int
    last_regeneration: Optional[datetime]
    email: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Account":
        return cls(
            user_id=str(row.get("user_id") or ""),
            credits=int(row.get("credits") or 0),
            last_regeneration=_parse_ts(row.get("last_credit_regeneration")),
            email=str(row.get("email") or ""),
        )


class CreditLedger:
    """
    Balance gatekeeper for one Supabase client.

    `clock` is injectable so the 24h gate can be tested without sleeping.
    """

    def __init__(self, sb=None, clock: Optional[Callable[[], datetime]] = None):
        self.sb = sb
        self.clock = clock or _now_utc

    # ============================================================
    # READS
    # ============================================================
    def get_account(self, account_id: str) -> Account:
        row = db.get_account(account_id, sb=self.sb)
        if not row:
            raise AccountNotFound("Account not found.")
        return Account.from_row(row)

    def open_account(self, account_id: str, email: str = "") -> Account:
        """Get-or-create: new accounts start full, with the regeneration clock at creation time."""
        row = db.get_account(account_id, sb=self.sb)
        if not row:
            row = db.create_account(account_id, email, MAX_CREDITS, now=self.clock(), sb=self.sb)
        return Account.from_row(row)

    def seconds_until_regeneration(self, account: Account, now: Optional[datetime] = None) -> float:
        """0 when the next regenerate() would apply."""
        if account.last_regeneration is None:
            return 0.0
        now = now or self.clock()
        remaining = (account.last_regeneration + REGEN_INTERVAL) - now
        return max(0.0, remaining.total_seconds())

    # ============================================================
    # WRITES
    # ============================================================
    def try_deduct(self, account_id: str, amount: int) -> bool:
        """
        Subtract `amount` only if the balance covers it.
        False = insufficient (state untouched). Never goes negative, never double-spends:
        two racing deductions that only one balance can cover -> exactly one True.
        """
        amount = int(amount)
        if amount <= 0:
            raise ValueError(f"deduction amount must be positive, got {amount}")

        for _ in range(CAS_ATTEMPTS):
            acct = self.get_account(account_id)
            if acct.credits < amount:
                print(f"[credit_ledger.try_deduct] refused user_id={account_id} balance={acct.credits} amount={amount}")
                return False

            row = db.cas_account_credits(
                account_id,
                expected_credits=acct.credits,
                new_credits=acct.credits - amount,
                min_credits=amount,
                now=self.clock(),
                sb=self.sb,
            )
            if row:
                return True

        print(f"[credit_ledger.try_deduct] CAS attempts exhausted user_id={account_id} amount={amount}")
        raise ContentionError(f"Could not deduct {amount} credits: balance kept changing.")

    def regenerate(self, account_id: str) -> Account:
        """
        Apply the daily top-up if REGEN_INTERVAL has elapsed since the last one.
        Returns the account as it stands afterwards (regenerated or unchanged).
        Concurrent calls inside one window apply it at most once: the first write moves
        last_credit_regeneration to now, so the others' staleness predicate no longer matches.
        """
        for _ in range(CAS_ATTEMPTS):
            acct = self.get_account(account_id)
            now = self.clock()

            if acct.last_regeneration is not None and now - acct.last_regeneration < REGEN_INTERVAL:
                return acct

            new_credits = min(acct.credits + REGEN_AMOUNT, MAX_CREDITS)
            row = db.cas_account_credits(
                account_id,
                expected_credits=acct.credits,
                new_credits=new_credits,
                regenerated_at=now,
                regenerated_before=now - REGEN_INTERVAL if acct.last_regeneration is not None else None,
                never_regenerated=acct.last_regeneration is None,
                now=now,
                sb=self.sb,
            )
            if row:
                print(f"[credit_ledger.regenerate] user_id={account_id} {acct.credits} -> {new_credits}")
                return Account.from_row(row)

        print(f"[credit_ledger.regenerate] CAS attempts exhausted user_id={account_id}")
        raise ContentionError("Could not apply credit regeneration: balance kept changing.")

    def refund(self, account_id: str, amount: int) -> Account:
        """
        Compensation only (spend recorded nowhere). Capped at MAX_CREDITS like any top-up.
        """
        amount = int(amount)
        if amount <= 0:
            raise ValueError(f"refund amount must be positive, got {amount}")

        for _ in range(CAS_ATTEMPTS):
            acct = self.get_account(account_id)
            new_credits = min(acct.credits + amount, MAX_CREDITS)
            row = db.cas_account_credits(
                account_id,
                expected_credits=acct.credits,
                new_credits=new_credits,
                now=self.clock(),
                sb=self.sb,
            )
            if row:
                return Account.from_row(row)

        raise ContentionError(f"Could not refund {amount} credits: balance kept changing.")
