from sqlalchemy import Column, String, Text

from .base import Base, WPID, table_name


class Option(Base):
    """Row of the WordPress options table"""
    __tablename__ = table_name("options")

    option_id = Column(WPID, primary_key=True, autoincrement=True)
    option_name = Column(String(191), nullable=False, unique=True)
    option_value = Column(Text, nullable=False, default="")
    autoload = Column(String(20), nullable=False, default="yes")
