"""
Permission policies shared by every controller.

can_edit_any and can_edit_entity are the two checks the endpoints compose;
require_* variants raise the matching REST error instead of returning False.
"""
import logging
from typing import Optional

from tutorpress.auth.capabilities import CurrentUser
from tutorpress.exceptions import ForbiddenException
from tutorpress.models import Post, PostType
from tutorpress.services.store import WordPressStore

logger = logging.getLogger(__name__)

CO_INSTRUCTORS_META = "_tutor_course_instructors"


def user_can(user: Optional[CurrentUser], capability: str) -> bool:
    return user is not None and user.can(capability)


def can_edit_any(user: Optional[CurrentUser]) -> bool:
    """current_user_can('edit_posts')"""
    return user_can(user, "edit_posts")


def _co_instructor_ids(store: WordPressStore, post: Post) -> set[int]:
    stored = store.get_post_meta(post.id, CO_INSTRUCTORS_META)
    if not isinstance(stored, list):
        return set()
    ids = set()
    for value in stored:
        try:
            ids.add(int(value))
        except (TypeError, ValueError):
            continue
    return ids


def can_edit_entity(store: WordPressStore, user: Optional[CurrentUser], post: Optional[Post]) -> bool:
    """
    current_user_can('edit_post', $id) for an existing post.

    Owners need edit_posts (plus edit_published_posts once published); anyone
    else needs edit_others_posts. Tutor LMS also lets co-instructors edit the
    courses they are attached to.
    """
    if user is None or post is None:
        return False
    if post.post_status == "trash":
        return False

    if int(post.post_author or 0) == user.id:
        if post.post_status == "publish":
            return user.can("edit_published_posts")
        return user.can("edit_posts")

    if user.can("edit_others_posts"):
        return True

    if post.post_type == PostType.COURSE and user.can("edit_posts"):
        return user.id in _co_instructor_ids(store, post)

    return False


def require_edit_any(user: Optional[CurrentUser], message: Optional[str] = None) -> None:
    if not can_edit_any(user):
        raise ForbiddenException(message=message)


def require_edit_entity(
    store: WordPressStore,
    user: Optional[CurrentUser],
    post: Optional[Post],
    message: Optional[str] = None,
) -> None:
    if not can_edit_entity(store, user, post):
        logger.info(
            "User %s denied edit on post %s",
            getattr(user, "id", None),
            getattr(post, "id", None),
        )
        raise ForbiddenException(message=message)
