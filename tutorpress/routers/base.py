"""
Pieces shared by every TutorPress controller: the REST namespace, the
response envelope, the baseline permission check and the Tutor LMS guard.
"""
from typing import Any, Optional

from fastapi import Depends

from tutorpress.auth.capabilities import CurrentUser
from tutorpress.auth.dependencies import get_store
from tutorpress.auth.policies import require_edit_any
from tutorpress.exceptions import DependencyMissingException
from tutorpress.services.feature_flags import AddonChecker, FeatureFlags
from tutorpress.services.store import WordPressStore

NAMESPACE = "tutorpress/v1"
DEFAULT_MESSAGE = "Request successful."


def format_response(data: Any, message: str = "") -> dict:
    """Consistent {success, message, data} envelope."""
    return {
        "success": True,
        "message": message or DEFAULT_MESSAGE,
        "data": data,
    }


def check_permission(user: Optional[CurrentUser]) -> bool:
    """Baseline check: the caller can edit posts, otherwise 403."""
    require_edit_any(user)
    return True


def get_addon_checker(store: WordPressStore = Depends(get_store)) -> AddonChecker:
    return AddonChecker(store)


def get_feature_flags(checker: AddonChecker = Depends(get_addon_checker)) -> FeatureFlags:
    return FeatureFlags(checker)


def ensure_tutor_lms(checker: AddonChecker) -> bool:
    """Tutor LMS must be an active plugin, otherwise 500 tutor_not_active."""
    if not checker.is_tutor_lms_active():
        raise DependencyMissingException(code="tutor_not_active", message="Tutor LMS is not active.")
    return True
