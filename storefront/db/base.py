# storefront/db/base.py
# Общая declarative база для SQLAlchemy с единым именованием ограничений.
# Модуль не импортирует модели, чтобы избежать циклических импортов.

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

# uq_cart_lines_user_id и т.п. — одинаковые имена в Postgres и SQLite
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))
