"""
Data access over the WordPress tables.

WordPressStore is the single place that touches posts, post meta, users, user
meta and options. It follows the semantics of the WordPress functions the
plugin used (get_post, get_post_meta(..., true), update_post_meta,
wp_update_post, WP_Query, get_user_by, get_option) so the rest of the code
can be read side by side with Tutor LMS.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorpress.config import settings
from tutorpress.models import Option, Post, PostMeta, PostType, User, UserMeta
from tutorpress.services.meta import maybe_serialize, maybe_unserialize

logger = logging.getLogger(__name__)

# Rewrite slugs Tutor LMS registers for its post types
_REWRITE_SLUGS = {
    PostType.COURSE: "courses",
    PostType.BUNDLE: "course-bundle",
}


def esc_like(text: str) -> str:
    """$wpdb->esc_like(): match %, _ and backslash literally in LIKE."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class WordPressStore:
    def __init__(self, db: Session):
        self.db = db

    # Posts

    def get_post(self, post_id: Any) -> Optional[Post]:
        try:
            post_id = int(post_id)
        except (TypeError, ValueError):
            return None
        if post_id <= 0:
            return None
        return self.db.query(Post).filter(Post.id == post_id).first()

    def get_post_of_type(self, post_id: Any, post_type: str) -> Optional[Post]:
        """Return the post only when it exists and has the given type."""
        post = self.get_post(post_id)
        if post is None or post.post_type != post_type:
            return None
        return post

    def query_posts(
        self,
        post_type: str,
        post_status: str = "publish",
        search: Optional[str] = None,
        per_page: int = 10,
        page: int = 1,
    ) -> tuple[list[Post], int, int]:
        """Paged WP_Query equivalent: returns (posts, found_posts, max_num_pages)."""
        query = self.db.query(Post).filter(
            Post.post_type == post_type,
            Post.post_status == post_status,
        )
        if search:
            pattern = f"%{esc_like(search)}%"
            query = query.filter(or_(
                Post.post_title.like(pattern, escape="\\"),
                Post.post_excerpt.like(pattern, escape="\\"),
                Post.post_content.like(pattern, escape="\\"),
            ))

        total = query.count()
        posts = (
            query.order_by(Post.post_date.desc(), Post.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        total_pages = math.ceil(total / per_page) if per_page else 0
        return posts, total, total_pages

    def update_post(self, post: Post, **fields) -> Post:
        """wp_update_post equivalent for the columns passed in."""
        for name, value in fields.items():
            setattr(post, name, value)
        now = _now()
        post.post_modified = now
        post.post_modified_gmt = now
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update post %s", post.id)
            raise
        self.db.refresh(post)
        return post

    def get_permalink(self, post: Post) -> str:
        base = settings.site_url_base
        slug = _REWRITE_SLUGS.get(post.post_type)
        if post.post_status == "publish" and post.post_name and slug:
            return f"{base}/{slug}/{post.post_name}/"
        if slug:
            return f"{base}/?post_type={post.post_type}&p={post.id}"
        return f"{base}/?p={post.id}"

    def get_thumbnail_url(self, post_id: int) -> Optional[str]:
        """URL of the featured image attachment, None when there is none."""
        thumbnail_id = self.get_post_meta(post_id, "_thumbnail_id")
        attachment = self.get_post_of_type(thumbnail_id, PostType.ATTACHMENT)
        if attachment is None or not attachment.guid:
            return None
        return attachment.guid

    # Post meta

    def get_post_meta(self, post_id: int, meta_key: str) -> Any:
        """get_post_meta($id, $key, true); None when the key is absent."""
        row = (
            self.db.query(PostMeta)
            .filter(PostMeta.post_id == post_id, PostMeta.meta_key == meta_key)
            .order_by(PostMeta.meta_id)
            .first()
        )
        if row is None:
            return None
        return maybe_unserialize(row.meta_value)

    def update_post_meta(self, post_id: int, meta_key: str, value: Any) -> bool:
        """
        Write a meta value, inserting the key when missing.

        Unlike WordPress this returns True when the stored value was already
        equal, so writing the same value twice is not reported as a failure.
        """
        stored = maybe_serialize(value)
        rows = (
            self.db.query(PostMeta)
            .filter(PostMeta.post_id == post_id, PostMeta.meta_key == meta_key)
            .all()
        )
        try:
            if rows:
                for row in rows:
                    row.meta_value = stored
            else:
                self.db.add(PostMeta(post_id=post_id, meta_key=meta_key, meta_value=stored))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update meta %s on post %s", meta_key, post_id)
            raise
        return True

    # Users

    def get_user(self, user_id: Any) -> Optional[User]:
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        if user_id <= 0:
            return None
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_login_or_email(self, username: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(or_(User.user_login == username, User.user_email == username))
            .first()
        )

    def get_user_meta(self, user_id: int, meta_key: str) -> Any:
        row = (
            self.db.query(UserMeta)
            .filter(UserMeta.user_id == user_id, UserMeta.meta_key == meta_key)
            .order_by(UserMeta.umeta_id)
            .first()
        )
        if row is None:
            return None
        return maybe_unserialize(row.meta_value)

    # Options

    def get_option(self, name: str, default: Any = None) -> Any:
        row = self.db.query(Option).filter(Option.option_name == name).first()
        if row is None:
            return default
        return maybe_unserialize(row.option_value)
