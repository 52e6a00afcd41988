from sqlalchemy import Column, Integer, String

from app.data.database import Base
from app.domain.enums import Role


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, unique=True)
    role = Column(String(16), nullable=False, default=Role.USER.value)
