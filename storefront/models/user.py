# storefront/models/user.py
# Модель покупателя: email (адрес для уведомлений), имя, хеш пароля, роль.
from sqlalchemy import Column, Integer, String, DateTime, Enum
from datetime import datetime
from storefront.db.base import Base
import enum

class RoleEnum(str, enum.Enum):
    client = "client"
    admin = "admin"

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    hashed_password = Column(String, nullable=True)
    role = Column(Enum(RoleEnum), nullable=False, default=RoleEnum.client)
    created_at = Column(DateTime, default=datetime.utcnow)
