"""
Course bundle operations.

A bundle is a ``course-bundle`` post whose linked courses live in the
``bundle-course-ids`` meta as a comma-separated string (older data may hold a
serialized array, which is still accepted on read). Everything else is read
from the course posts and their Tutor LMS meta fields.
"""
import hashlib
import logging
import re
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from tutorpress.auth.capabilities import CurrentUser
from tutorpress.auth.policies import CO_INSTRUCTORS_META, user_can
from tutorpress.exceptions import (
    BadRequestException,
    NotFoundException,
    StorageFailureException,
)
from tutorpress.models import Post, PostType, User
from tutorpress.services.sanitize import kses_post, sanitize_text_field, sanitize_textarea_field
from tutorpress.services.store import WordPressStore

logger = logging.getLogger(__name__)

COURSE_IDS_META = "bundle-course-ids"
BENEFITS_META = "_tutor_course_benefits"
PRICE_TYPE_META = "_tutor_course_price_type"
PRICE_META = "tutor_course_price"
SALE_PRICE_META = "tutor_course_sale_price"
SELLING_OPTION_META = "tutor_course_selling_option"
PRODUCT_ID_META = "_tutor_course_product_id"
RIBBON_TYPE_META = "tutor_bundle_ribbon_type"
JOB_TITLE_META = "_tutor_profile_job_title"

FREE_LABEL = "Free"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _intval(value: Any) -> int:
    """PHP intval(): leading digits of a string, 0 when there are none."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value)) if value is not None else None
    return int(match.group(1)) if match else 0


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _mysql_datetime(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def _rfc3339(value) -> Optional[str]:
    return value.strftime("%Y-%m-%dT%H:%M:%S") if value else None


# Bundles


def get_bundle_or_404(store: WordPressStore, bundle_id: int, message: str = "Bundle not found.") -> Post:
    bundle = store.get_post_of_type(bundle_id, PostType.BUNDLE)
    if bundle is None:
        raise NotFoundException(code="bundle_not_found", message=message)
    return bundle


def serialize_bundle(bundle: Post) -> dict:
    return {
        "id": bundle.id,
        "title": bundle.post_title,
        "content": bundle.post_content,
        "slug": bundle.post_name,
        "status": bundle.post_status,
        "created": _rfc3339(bundle.post_date),
        "modified": _rfc3339(bundle.post_modified),
    }


def list_bundles(store: WordPressStore, per_page: int = 10, page: int = 1, search: Optional[str] = None) -> dict:
    posts, total, total_pages = store.query_posts(
        PostType.BUNDLE,
        post_status="publish",
        search=search or None,
        per_page=per_page,
        page=page,
    )
    return {
        "bundles": [{"id": p.id, "title": p.post_title, "slug": p.post_name} for p in posts],
        "total": total,
        "total_pages": total_pages,
    }


def update_bundle(
    store: WordPressStore,
    bundle: Post,
    title: Optional[str] = None,
    content: Optional[str] = None,
) -> Post:
    """Partial update: only the fields passed in are written."""
    fields = {}
    if title is not None:
        fields["post_title"] = sanitize_text_field(title)
    if content is not None:
        fields["post_content"] = kses_post(content)

    try:
        bundle = store.update_post(bundle, **fields)
    except SQLAlchemyError:
        raise StorageFailureException(code="db_update_error", message="Could not update post in the database.")

    logger.info("Bundle %s updated (%s)", bundle.id, ", ".join(sorted(fields)) or "no fields")
    return bundle


# Courses


def parse_course_ids(stored: Any) -> list[int]:
    """Accept both the comma-separated string and the array form."""
    if isinstance(stored, str) and stored:
        return [_intval(part) for part in stored.split(",")]
    if isinstance(stored, dict):
        stored = list(stored.values())
    if isinstance(stored, (list, tuple)):
        return [_intval(v) for v in stored]
    return []


def get_bundle_course_ids(store: WordPressStore, bundle: Post) -> list[int]:
    return parse_course_ids(store.get_post_meta(bundle.id, COURSE_IDS_META))


def format_price(price_type: Any, regular_price: Any, sale_price: Any) -> str:
    """Price label for a course, formatted like Tutor LMS course cards."""
    if price_type == "free":
        return FREE_LABEL

    regular = _to_float(regular_price)
    sale = _to_float(sale_price)

    if sale > 0:
        return (
            '<span class="tutor-course-price-regular" style="text-decoration: line-through;'
            f' color: #999; margin-right: 8px;">${regular:,.2f}</span>'
            f'<span class="tutor-course-price-sale">${sale:,.2f}</span>'
        )
    if regular > 0:
        return f'<span class="tutor-course-price-regular">${regular:,.2f}</span>'
    return FREE_LABEL


def is_free_course(store: WordPressStore, course: Post) -> bool:
    price_type = store.get_post_meta(course.id, PRICE_TYPE_META)
    if price_type == "free":
        return True
    regular = store.get_post_meta(course.id, PRICE_META)
    if regular in (None, "", "0", 0, False):
        return True
    try:
        return float(regular) == 0
    except (TypeError, ValueError):
        return False


def get_avatar_url(user: User, size: int = 96) -> str:
    email_hash = hashlib.md5((user.user_email or "").strip().lower().encode("utf-8")).hexdigest()
    return f"https://secure.gravatar.com/avatar/{email_hash}?s={size}&d=mm&r=g"


def _instructor_record(store: WordPressStore, user: User, role: str) -> dict:
    designation = store.get_user_meta(user.id, JOB_TITLE_META)
    return {
        "id": user.id,
        "display_name": user.display_name,
        "user_email": user.user_email,
        "user_login": user.user_login,
        "avatar_url": get_avatar_url(user),
        "role": role,
        "designation": designation if isinstance(designation, str) else "",
    }


def get_course_instructors(store: WordPressStore, course: Post) -> list[dict]:
    """Course author first, then co-instructors; unknown users are skipped."""
    instructors = []

    if course.post_author:
        author = store.get_user(course.post_author)
        if author is not None:
            instructors.append(_instructor_record(store, author, "author"))

    co_instructor_ids = store.get_post_meta(course.id, CO_INSTRUCTORS_META)
    if isinstance(co_instructor_ids, list):
        for instructor_id in co_instructor_ids:
            instructor = store.get_user(instructor_id)
            if instructor is not None:
                instructors.append(_instructor_record(store, instructor, "instructor"))

    return instructors


def serialize_course(store: WordPressStore, course: Post, include_instructors: bool = False) -> dict:
    def meta(key: str) -> Any:
        return store.get_post_meta(course.id, key)

    author = store.get_user(course.post_author)
    duration = meta("_course_duration")

    return {
        "id": course.id,
        "title": course.post_title,
        "permalink": store.get_permalink(course),
        "featured_image": store.get_thumbnail_url(course.id),
        "author": author.display_name if author else "",
        "date_created": _mysql_datetime(course.post_date),
        "price": format_price(meta(PRICE_TYPE_META), meta(PRICE_META), meta(SALE_PRICE_META)),
        "duration": duration if duration else "",
        "lesson_count": _intval(meta("_lesson_count")),
        "quiz_count": _intval(meta("_quiz_count")),
        "resource_count": _intval(meta("_resource_count")),
        "instructors": get_course_instructors(store, course) if include_instructors else [],
    }


def get_bundle_courses(store: WordPressStore, bundle: Post, include_instructors: bool = False) -> dict:
    courses = []
    for course_id in get_bundle_course_ids(store, bundle):
        course = store.get_post_of_type(course_id, PostType.COURSE)
        if course is not None:
            courses.append(serialize_course(store, course, include_instructors))

    return {
        "success": True,
        "data": courses,
        "total_found": len(courses),
    }


def filter_bundlable_courses(store: WordPressStore, user: Optional[CurrentUser], course_ids: list) -> list[int]:
    """
    Keep the courses the caller may put in a bundle.

    A course qualifies when the caller wrote it, when it is free, or when the
    caller can manage_options. Unknown IDs and duplicates are dropped; the
    first occurrence decides the order.
    """
    is_admin = user_can(user, "manage_options")
    user_id = user.id if user is not None else 0

    accepted: list[int] = []
    for raw_id in course_ids:
        course_id = _intval(raw_id)
        if course_id in accepted:
            continue
        course = store.get_post_of_type(course_id, PostType.COURSE)
        if course is None:
            continue

        if int(course.post_author or 0) == user_id and user_id:
            accepted.append(course_id)
        elif is_free_course(store, course) or is_admin:
            accepted.append(course_id)
        else:
            logger.info("User %s may not bundle paid course %s", user_id, course_id)

    return accepted


def update_bundle_courses(
    store: WordPressStore,
    bundle: Post,
    user: Optional[CurrentUser],
    course_ids: Any,
) -> list[int]:
    if not isinstance(course_ids, list):
        raise BadRequestException(code="invalid_course_ids", message="Course IDs must be an array.")

    accepted = filter_bundlable_courses(store, user, course_ids)
    try:
        store.update_post_meta(bundle.id, COURSE_IDS_META, ",".join(str(i) for i in accepted))
    except SQLAlchemyError:
        raise StorageFailureException(code="update_failed", message="Failed to update bundle courses.")

    logger.info("Bundle %s courses set to %s (%d requested)", bundle.id, accepted, len(course_ids))
    return accepted


# Benefits


def get_bundle_benefits(store: WordPressStore, bundle: Post) -> dict:
    benefits = store.get_post_meta(bundle.id, BENEFITS_META)
    return {
        "success": True,
        "data": {
            "benefits": benefits if isinstance(benefits, str) else "",
            "bundle_id": bundle.id,
        },
    }


def save_bundle_benefits(store: WordPressStore, bundle: Post, benefits: Optional[str]) -> dict:
    cleaned = sanitize_textarea_field(benefits or "")
    try:
        saved = store.update_post_meta(bundle.id, BENEFITS_META, cleaned)
    except SQLAlchemyError as e:
        logger.error("Failed to save bundle benefits meta fields: %s", e)
        raise StorageFailureException(code="meta_save_failed", message="Failed to save bundle benefits")

    return {
        "success": True,
        "message": "Bundle benefits saved successfully",
        "data": {
            "bundle_id": bundle.id,
            "benefits_saved": bool(saved),
        },
    }


# Instructors


def get_bundle_instructors(store: WordPressStore, bundle: Post) -> dict:
    """Unique instructors across every linked course; first occurrence wins."""
    course_ids = get_bundle_course_ids(store, bundle)

    unique_instructors = []
    seen: set[int] = set()
    for course_id in course_ids:
        course = store.get_post_of_type(course_id, PostType.COURSE)
        if course is None:
            continue
        for instructor in get_course_instructors(store, course):
            if instructor["id"] not in seen:
                seen.add(instructor["id"])
                unique_instructors.append(instructor)

    return {
        "success": True,
        "data": unique_instructors,
        "total_instructors": len(unique_instructors),
        "total_courses": len(course_ids),
    }


# Settings


def get_bundle_settings(store: WordPressStore, bundle: Post) -> dict:
    """Pricing, ribbon and linked-course settings stored on the bundle."""
    def meta(key: str) -> Any:
        return store.get_post_meta(bundle.id, key)

    def text(key: str) -> str:
        value = meta(key)
        return value if isinstance(value, str) else ""

    benefits = meta(BENEFITS_META)
    return {
        "price_type": text(PRICE_TYPE_META),
        "price": _to_float(meta(PRICE_META)),
        "sale_price": _to_float(meta(SALE_PRICE_META)),
        "selling_option": text(SELLING_OPTION_META),
        "product_id": _intval(meta(PRODUCT_ID_META)),
        "ribbon_type": text(RIBBON_TYPE_META),
        "course_ids": get_bundle_course_ids(store, bundle),
        "benefits": benefits if isinstance(benefits, str) else "",
    }
