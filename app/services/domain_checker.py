"""
Credit-metered domain check cycle.

A check is "settled" in a single transaction: the domain's status and
last_checked are written, the owner is charged credits_per_check and one
DomainHistory row is appended. Both writes are conditional updates, so a
domain that was checked concurrently (its last_checked moved since we read
it) or an owner who ran out of credits rolls the whole settle back instead
of double-charging or driving the balance negative.
"""
import logging
import threading
import time
from collections import namedtuple
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.models.domain_history import DomainHistory
from app.models.monitored_domain import MonitoredDomain
from app.models.user import User
from app.services.block_check_client import BlockCheckClient, BlockCheckError

logger = logging.getLogger(__name__)

# Snapshot of a due domain taken at selection time; survives commits in the cycle session
DueDomain = namedtuple("DueDomain", ["id", "user_id", "domain", "last_checked", "credits_per_check"])

# Only one cycle runs at a time in this process
_cycle_lock = threading.Lock()


class SettleResult(str, Enum):
    SETTLED = "settled"
    STALE = "stale"  # last_checked changed since it was read
    INSUFFICIENT_CREDITS = "insufficient_credits"


def chunked(items: List, size: int) -> Iterator[List]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def settle_check(
    db: Session,
    domain_id: int,
    user_id: int,
    observed_last_checked: Optional[datetime],
    is_blocked: bool,
    cost: int,
    now: Optional[datetime] = None
) -> SettleResult:
    """Apply one completed check: status, charge and history, all or nothing."""
    now = now or datetime.utcnow()

    domain_query = db.query(MonitoredDomain).filter(MonitoredDomain.id == domain_id)
    if observed_last_checked is None:
        domain_query = domain_query.filter(MonitoredDomain.last_checked.is_(None))
    else:
        domain_query = domain_query.filter(MonitoredDomain.last_checked == observed_last_checked)

    updated = domain_query.update(
        {MonitoredDomain.status: is_blocked, MonitoredDomain.last_checked: now},
        synchronize_session=False
    )
    if updated != 1:
        db.rollback()
        return SettleResult.STALE

    charged = db.query(User).filter(
        User.id == user_id,
        User.credits >= cost
    ).update(
        {User.credits: User.credits - cost},
        synchronize_session=False
    )
    if charged != 1:
        db.rollback()
        return SettleResult.INSUFFICIENT_CREDITS

    db.add(DomainHistory(
        domain_id=domain_id,
        status=is_blocked,
        credits_used=cost,
        checked_at=now
    ))
    db.commit()
    return SettleResult.SETTLED


class DomainChecker:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        client: Optional[BlockCheckClient] = None,
        batch_size: Optional[int] = None,
        batch_pause: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.session_factory = session_factory
        self.client = client or BlockCheckClient()
        self.batch_size = batch_size or settings.ORACLE_BATCH_SIZE
        self.batch_pause = settings.ORACLE_BATCH_PAUSE_SECONDS if batch_pause is None else batch_pause
        self.sleep = sleep

    def get_due_domains(self, db: Session, now: datetime) -> List[DueDomain]:
        """
        Domains whose interval has elapsed since their last check (or since
        they were added) and whose active owner can pay for one check.
        """
        candidates = db.query(MonitoredDomain).join(
            User, MonitoredDomain.user_id == User.id
        ).filter(
            User.is_active == True,
            User.credits >= MonitoredDomain.credits_per_check,
            MonitoredDomain.due_clause(now)
        ).order_by(MonitoredDomain.id).all()

        return [
            DueDomain(d.id, d.user_id, d.domain, d.last_checked, d.credits_per_check)
            for d in candidates
            if d.is_due(now)
        ]

    def run_cycle(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Check every due domain once. Never raises for oracle or per-domain failures."""
        if not _cycle_lock.acquire(blocking=False):
            logger.info("[DOMAIN CHECK] Previous cycle still running, skipping this tick")
            return {"due": 0, "checked": 0, "skipped": 0, "failed_batches": 0, "overlapped": 1}

        try:
            return self._run_cycle(now or datetime.utcnow())
        finally:
            _cycle_lock.release()

    def _run_cycle(self, now: datetime) -> Dict[str, int]:
        summary = {"due": 0, "checked": 0, "skipped": 0, "failed_batches": 0, "overlapped": 0}
        db = self.session_factory()
        try:
            due = self.get_due_domains(db, now)
            summary["due"] = len(due)
            if not due:
                return summary

            batches = list(chunked(due, self.batch_size))
            for index, batch in enumerate(batches):
                self._process_batch(db, batch, summary, now)
                # Stay under the oracle's own rate limiting
                if index < len(batches) - 1 and self.batch_pause > 0:
                    self.sleep(self.batch_pause)

            logger.info(
                "[DOMAIN CHECK] Cycle finished: %s due, %s checked, %s skipped, %s failed batches",
                summary["due"], summary["checked"], summary["skipped"], summary["failed_batches"]
            )
            return summary
        except Exception as e:
            logger.exception("[DOMAIN CHECK] Cycle aborted: %s", e)
            db.rollback()
            return summary
        finally:
            db.close()

    def _process_batch(self, db: Session, batch: List[DueDomain], summary: Dict[str, int], now: datetime) -> None:
        names = [d.domain for d in batch]
        try:
            results = self.client.check_domains(names)
        except BlockCheckError as e:
            summary["failed_batches"] += 1
            summary["skipped"] += len(batch)
            logger.error("[DOMAIN CHECK] Batch of %s domains failed, leaving them for the next cycle: %s", len(batch), e)
            return

        for due in batch:
            try:
                is_blocked = results.get(due.domain, False)
                outcome = settle_check(
                    db,
                    domain_id=due.id,
                    user_id=due.user_id,
                    observed_last_checked=due.last_checked,
                    is_blocked=is_blocked,
                    cost=due.credits_per_check,
                    now=now
                )
                if outcome == SettleResult.SETTLED:
                    summary["checked"] += 1
                    logger.info("[DOMAIN CHECK] Checked %s: %s", due.domain, "Blocked" if is_blocked else "Not blocked")
                else:
                    summary["skipped"] += 1
                    logger.warning("[DOMAIN CHECK] Skipped %s (%s)", due.domain, outcome.value)
            except Exception as e:
                db.rollback()
                summary["skipped"] += 1
                logger.exception("[DOMAIN CHECK] Failed to process domain %s: %s", due.domain, e)

    def check_domain_now(self, db: Session, domain: MonitoredDomain) -> SettleResult:
        """
        Manual check of a single domain. Oracle failures read as "not blocked"
        so the caller always gets an answer.
        """
        try:
            is_blocked = self.client.check_domain(domain.domain)
        except BlockCheckError as e:
            logger.warning("[DOMAIN CHECK] Oracle error for %s, treating as not blocked: %s", domain.domain, e)
            is_blocked = False

        return settle_check(
            db,
            domain_id=domain.id,
            user_id=domain.user_id,
            observed_last_checked=domain.last_checked,
            is_blocked=is_blocked,
            cost=domain.credits_per_check
        )


def get_domain_checker() -> DomainChecker:
    """FastAPI dependency; overridden in tests."""
    return DomainChecker()
