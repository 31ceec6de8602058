from sqlalchemy import Column, Integer, String

from .base import Base


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String(100), unique=True, nullable=False)
    firstname = Column(String(100), nullable=False, server_default="")
    lastname = Column(String(100), nullable=False, server_default="")
    email = Column(String(320))
