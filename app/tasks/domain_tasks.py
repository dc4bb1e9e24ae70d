from app.celery_app import celery_app
from app.services.domain_checker import DomainChecker


@celery_app.task(name="check_due_domains")
def check_due_domains():
    """Run one check cycle from a Celery worker (scheduled by beat)."""
    summary = DomainChecker().run_cycle()
    return {"status": "success", **summary}
