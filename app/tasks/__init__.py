from app.tasks.scheduler import CheckScheduler, run_periodic_checks

__all__ = [
    'CheckScheduler',
    'run_periodic_checks'
]
