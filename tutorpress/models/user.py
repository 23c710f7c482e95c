from sqlalchemy import Column, String, DateTime, Integer, Text

from .base import Base, WPID, table_name


class User(Base):
    """Row of the WordPress users table"""
    __tablename__ = table_name("users")

    id = Column("ID", WPID, primary_key=True, autoincrement=True)
    user_login = Column(String(60), nullable=False, default="", index=True)
    user_pass = Column(String(255), nullable=False, default="")
    user_nicename = Column(String(50), nullable=False, default="")
    user_email = Column(String(100), nullable=False, default="", index=True)
    user_url = Column(String(100), nullable=False, default="")
    user_registered = Column(DateTime, nullable=True)
    user_status = Column(Integer, nullable=False, default=0)
    display_name = Column(String(250), nullable=False, default="")


class UserMeta(Base):
    """Row of the WordPress usermeta table"""
    __tablename__ = table_name("usermeta")

    umeta_id = Column(WPID, primary_key=True, autoincrement=True)
    user_id = Column(WPID, nullable=False, default=0, index=True)
    meta_key = Column(String(255), nullable=True, index=True)
    meta_value = Column(Text, nullable=True)
