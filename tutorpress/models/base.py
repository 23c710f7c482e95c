from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declarative_base

from tutorpress.config import settings

Base = declarative_base()

# WordPress uses BIGINT(20) UNSIGNED keys; SQLite only autoincrements INTEGER
WPID = BigInteger().with_variant(Integer(), "sqlite")


def table_name(name: str) -> str:
    """Prefix a WordPress core table name, e.g. posts -> wp_posts"""
    return f"{settings.table_prefix}{name}"
