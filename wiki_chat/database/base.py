"""
SQLAlchemy 선언적 베이스
"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
