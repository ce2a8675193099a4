"""
Account update planning, execution and reporting.
"""

from account_settings.services.account.mutation_plan import MutationPlan, build_mutation_plan
from account_settings.services.account.orchestrator import ProfileMutationOrchestrator, RunResult
from account_settings.services.account.result_reporter import ResultReporter
from account_settings.services.account.run_control import (
    CancellationToken,
    RunCancelled,
    SubmissionGuard,
)

__all__ = [
    "MutationPlan",
    "build_mutation_plan",
    "ProfileMutationOrchestrator",
    "RunResult",
    "ResultReporter",
    "CancellationToken",
    "RunCancelled",
    "SubmissionGuard",
]
