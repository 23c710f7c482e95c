from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.sql import func

from .base import Base, WPID, table_name


class PostType:
    """Post types owned by Tutor LMS"""
    COURSE = "courses"
    BUNDLE = "course-bundle"
    ATTACHMENT = "attachment"


class Post(Base):
    """Row of the WordPress posts table"""
    __tablename__ = table_name("posts")

    id = Column("ID", WPID, primary_key=True, autoincrement=True)
    post_author = Column(WPID, nullable=False, default=0, index=True)
    post_date = Column(DateTime, nullable=False, server_default=func.now())
    post_date_gmt = Column(DateTime, nullable=True)
    post_content = Column(Text, nullable=False, default="")
    post_title = Column(Text, nullable=False, default="")
    post_excerpt = Column(Text, nullable=False, default="")
    post_status = Column(String(20), nullable=False, default="publish")
    post_name = Column(String(200), nullable=False, default="", index=True)
    post_modified = Column(DateTime, nullable=False, server_default=func.now())
    post_modified_gmt = Column(DateTime, nullable=True)
    post_parent = Column(WPID, nullable=False, default=0)
    guid = Column(String(255), nullable=False, default="")
    post_type = Column(String(20), nullable=False, default="post")
    post_mime_type = Column(String(100), nullable=False, default="")

    __table_args__ = (
        Index("type_status_date", "post_type", "post_status", "post_date", "ID"),
    )


class PostMeta(Base):
    """Row of the WordPress postmeta table"""
    __tablename__ = table_name("postmeta")

    meta_id = Column(WPID, primary_key=True, autoincrement=True)
    post_id = Column(WPID, nullable=False, default=0, index=True)
    meta_key = Column(String(255), nullable=True, index=True)
    meta_value = Column(Text, nullable=True)
