"""
Account settings pipelines.

Business logic orchestration functions.
"""

from account_settings.pipelines.account_update import (
    get_account_pipeline,
    submit_account_update_pipeline,
    send_verification_email_pipeline,
)

__all__ = [
    "get_account_pipeline",
    "submit_account_update_pipeline",
    "send_verification_email_pipeline",
]
