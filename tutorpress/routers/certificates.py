"""
Certificate template endpoints - /certificate.

Template listing needs a logged-in caller who can edit posts; reading or
saving a course's selection needs edit rights on that course.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tutorpress.auth.capabilities import CurrentUser
from tutorpress.auth.dependencies import get_current_user, get_store, require_logged_in
from tutorpress.auth.policies import require_edit_any, require_edit_entity
from tutorpress.exceptions import AddonDisabledException, BadRequestException
from tutorpress.models import PostType
from tutorpress.routers.base import ensure_tutor_lms, format_response, get_addon_checker, get_feature_flags
from tutorpress.schemas.certificates import CertificateSelection, CertificateSelectionSave, CertificateTemplate
from tutorpress.schemas.common import ApiResponse
from tutorpress.services import certificates as certificate_service
from tutorpress.services.certificates import TemplateProvider, get_template_provider
from tutorpress.services.feature_flags import AddonChecker, FeatureFlags
from tutorpress.services.sanitize import sanitize_text_field
from tutorpress.services.store import WordPressStore

logger = logging.getLogger(__name__)

REST_BASE = "certificate"


def ensure_certificate_addon(flags: FeatureFlags, checker: AddonChecker, user: Optional[CurrentUser]) -> bool:
    if not flags.can_user_access_feature("certificates", user):
        raise AddonDisabledException(
            code="certificate_addon_disabled",
            message="Certificate addon is not enabled. Contact the site admin.",
        )
    return ensure_tutor_lms(checker)


def validate_course_id(store: WordPressStore, course_id: int) -> None:
    if not course_id or store.get_post_of_type(course_id, PostType.COURSE) is None:
        raise BadRequestException(
            message="Invalid parameter(s): course_id",
            data={"params": {"course_id": "Invalid course ID."}},
        )


def validate_template_key(provider: Optional[TemplateProvider], template_key: str) -> None:
    if not certificate_service.is_valid_template_key(provider, template_key):
        raise BadRequestException(
            message="Invalid parameter(s): template_key",
            data={"params": {"template_key": "Unknown certificate template."}},
        )


def check_course_edit_permission(store: WordPressStore, user: Optional[CurrentUser], course_id: int) -> None:
    if not course_id:
        raise BadRequestException(code="invalid_course_id", message="Invalid course ID.")
    require_edit_entity(
        store,
        user,
        store.get_post(course_id),
        "You do not have permission to edit this course's certificate settings.",
    )


def get_templates(
    include_none: bool = Query(True, description='Accepted for compatibility; "none" is always listed.'),
    user: CurrentUser = Depends(require_logged_in),
    flags: FeatureFlags = Depends(get_feature_flags),
    checker: AddonChecker = Depends(get_addon_checker),
    provider: Optional[TemplateProvider] = Depends(get_template_provider),
):
    """
    Every certificate template except "off".

    include_none is accepted but does not filter: "none" stays in the list so
    a course can always opt out of certificates.
    """
    require_edit_any(user, "You do not have permission to access certificate templates.")
    ensure_certificate_addon(flags, checker, user)

    templates = certificate_service.list_templates(provider)
    return format_response(templates, "Certificate templates retrieved successfully.")


def save_selection(
    data: CertificateSelectionSave,
    user: Optional[CurrentUser] = Depends(get_current_user),
    store: WordPressStore = Depends(get_store),
    flags: FeatureFlags = Depends(get_feature_flags),
    checker: AddonChecker = Depends(get_addon_checker),
    provider: Optional[TemplateProvider] = Depends(get_template_provider),
):
    course_id = abs(data.course_id)
    template_key = sanitize_text_field(data.template_key)

    validate_course_id(store, course_id)
    validate_template_key(provider, template_key)
    check_course_edit_permission(store, user, course_id)
    ensure_certificate_addon(flags, checker, user)

    selection = certificate_service.save_selection(store, course_id, template_key)
    return format_response(selection, "Certificate template selection saved successfully.")


def get_selection(
    course_id: int,
    user: Optional[CurrentUser] = Depends(get_current_user),
    store: WordPressStore = Depends(get_store),
    flags: FeatureFlags = Depends(get_feature_flags),
    checker: AddonChecker = Depends(get_addon_checker),
):
    validate_course_id(store, course_id)
    check_course_edit_permission(store, user, course_id)
    ensure_certificate_addon(flags, checker, user)

    selection = certificate_service.get_selection(store, course_id)
    return format_response(selection, "Certificate template selection retrieved successfully.")


def build_router() -> APIRouter:
    """Route table for the certificate controller."""
    router = APIRouter(prefix=f"/{REST_BASE}", tags=["Certificates"])

    router.add_api_route(
        "/templates", get_templates, methods=["GET"],
        response_model=ApiResponse[list[CertificateTemplate]],
    )
    router.add_api_route(
        "/save", save_selection, methods=["POST"],
        response_model=ApiResponse[CertificateSelection],
    )
    router.add_api_route(
        "/selection/{course_id}", get_selection, methods=["GET"],
        response_model=ApiResponse[CertificateSelection],
    )

    return router
