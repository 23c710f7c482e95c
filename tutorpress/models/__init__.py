# WordPress core tables (read through SQLAlchemy, owned by WordPress)
from .base import Base
from .post import Post, PostMeta, PostType
from .user import User, UserMeta
from .option import Option
