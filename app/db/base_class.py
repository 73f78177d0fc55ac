# File: app/db/base_class.py | Version: 1.1 | Path: /app/db/base_class.py
from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

# Stable constraint names so migrations can drop/alter them by name
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Single, authoritative Base for all models
Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))
