"""
Course bundle endpoints - /bundles.

Available only while the Tutor Pro Course Bundle addon is enabled.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from tutorpress.auth.capabilities import CurrentUser
from tutorpress.auth.dependencies import get_current_user, get_store
from tutorpress.auth.policies import require_edit_entity
from tutorpress.exceptions import NotFoundException
from tutorpress.models import PostType
from tutorpress.routers.base import check_permission, ensure_tutor_lms, get_addon_checker
from tutorpress.schemas.bundles import (
    BenefitsResponse,
    BenefitsSave,
    BenefitsSaveResponse,
    BundleCoursesResponse,
    BundleCoursesUpdate,
    BundleInstructorsResponse,
    BundleListResponse,
    BundleResponse,
    BundleSettings,
    BundleUpdate,
)
from tutorpress.services import bundles as bundle_service
from tutorpress.services.feature_flags import AddonChecker
from tutorpress.services.sanitize import sanitize_text_field
from tutorpress.services.store import WordPressStore

logger = logging.getLogger(__name__)

REST_BASE = "bundles"
EDIT_BUNDLE_DENIED = "You do not have permission to edit this bundle."


def require_bundle_addon(checker: AddonChecker = Depends(get_addon_checker)) -> None:
    """Without the Course Bundle addon the routes do not exist."""
    if not checker.is_course_bundle_enabled():
        raise NotFoundException(
            code="rest_no_route",
            message="No route was found matching the URL and request method.",
        )


def check_bundle_permission(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_current_user),
    store: WordPressStore = Depends(get_store),
    checker: AddonChecker = Depends(get_addon_checker),
) -> None:
    """
    Tutor LMS active, caller can edit posts, and when ``id`` names a bundle
    the caller can edit that bundle.
    """
    ensure_tutor_lms(checker)
    check_permission(user)

    bundle_id = request.path_params.get("id") or request.query_params.get("id")
    if bundle_id:
        bundle = store.get_post_of_type(bundle_id, PostType.BUNDLE)
        if bundle is not None:
            require_edit_entity(store, user, bundle, EDIT_BUNDLE_DENIED)


def list_bundles(
    per_page: int = Query(10, ge=1, le=100),
    page: int = Query(1, ge=1),
    search: Optional[str] = Query(None),
    store: WordPressStore = Depends(get_store),
):
    search = sanitize_text_field(search) if search else None
    return bundle_service.list_bundles(store, per_page=per_page, page=page, search=search)


def get_bundle(id: int, store: WordPressStore = Depends(get_store)):
    bundle = bundle_service.get_bundle_or_404(store, id)
    return bundle_service.serialize_bundle(bundle)


def update_bundle(
    id: int,
    data: Optional[BundleUpdate] = None,
    store: WordPressStore = Depends(get_store),
):
    bundle = bundle_service.get_bundle_or_404(store, id)
    data = data or BundleUpdate()
    bundle = bundle_service.update_bundle(store, bundle, title=data.title, content=data.content)
    return bundle_service.serialize_bundle(bundle)


def get_bundle_courses(
    id: int,
    include_instructors: Optional[str] = Query(None),
    store: WordPressStore = Depends(get_store),
):
    bundle = bundle_service.get_bundle_or_404(store, id)
    return bundle_service.get_bundle_courses(store, bundle, include_instructors == "true")


def update_bundle_courses(
    id: int,
    data: BundleCoursesUpdate,
    include_instructors: Optional[str] = Query(None),
    user: Optional[CurrentUser] = Depends(get_current_user),
    store: WordPressStore = Depends(get_store),
):
    bundle = bundle_service.get_bundle_or_404(store, id)
    bundle_service.update_bundle_courses(store, bundle, user, data.course_ids)
    return bundle_service.get_bundle_courses(store, bundle, include_instructors == "true")


def get_bundle_benefits(id: int, store: WordPressStore = Depends(get_store)):
    bundle = bundle_service.get_bundle_or_404(store, id, message="Bundle not found")
    return bundle_service.get_bundle_benefits(store, bundle)


def save_bundle_benefits(
    data: BenefitsSave,
    user: Optional[CurrentUser] = Depends(get_current_user),
    store: WordPressStore = Depends(get_store),
):
    bundle = bundle_service.get_bundle_or_404(store, abs(data.bundle_id), message="Bundle not found")
    require_edit_entity(store, user, bundle, EDIT_BUNDLE_DENIED)
    return bundle_service.save_bundle_benefits(store, bundle, data.benefits)


def get_bundle_instructors(id: int, store: WordPressStore = Depends(get_store)):
    bundle = bundle_service.get_bundle_or_404(store, id)
    return bundle_service.get_bundle_instructors(store, bundle)


def get_bundle_settings(id: int, store: WordPressStore = Depends(get_store)):
    bundle = bundle_service.get_bundle_or_404(store, id)
    return bundle_service.get_bundle_settings(store, bundle)


def build_router() -> APIRouter:
    """Route table for the bundle controller."""
    router = APIRouter(
        prefix=f"/{REST_BASE}",
        tags=["Bundles"],
        dependencies=[Depends(require_bundle_addon), Depends(check_bundle_permission)],
    )

    router.add_api_route("", list_bundles, methods=["GET"], response_model=BundleListResponse)
    router.add_api_route("/benefits/save", save_bundle_benefits, methods=["POST"], response_model=BenefitsSaveResponse)
    router.add_api_route("/{id}", get_bundle, methods=["GET"], response_model=BundleResponse)
    router.add_api_route("/{id}", update_bundle, methods=["PATCH"], response_model=BundleResponse)
    router.add_api_route("/{id}/courses", get_bundle_courses, methods=["GET"], response_model=BundleCoursesResponse)
    router.add_api_route("/{id}/courses", update_bundle_courses, methods=["PATCH"], response_model=BundleCoursesResponse)
    router.add_api_route("/{id}/benefits", get_bundle_benefits, methods=["GET"], response_model=BenefitsResponse)
    router.add_api_route("/{id}/instructors", get_bundle_instructors, methods=["GET"], response_model=BundleInstructorsResponse)
    router.add_api_route("/{id}/settings", get_bundle_settings, methods=["GET"], response_model=BundleSettings)

    return router
