"""Declarative base for the catalog tables."""

from datetime import datetime

from sqlalchemy import TIMESTAMP, LargeBinary, MetaData
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass

# Constraint names stay stable across migrations.
naming_convention = {
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(MappedAsDataclass, DeclarativeBase, kw_only=True):
    """Base for catalog models; every model is also a keyword-only dataclass."""

    metadata = MetaData(naming_convention=naming_convention)
    type_annotation_map = {
        bytes: LargeBinary,
        datetime: TIMESTAMP,
    }
