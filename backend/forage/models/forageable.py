# backend/forage/models/forageable.py
from sqlalchemy import Integer, String, Boolean, Column
from .base import Base

class ForageableRow(Base):
    __tablename__ = "forageable_database"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    in_season = Column("in_season", Boolean, nullable=False, default=False)
    notes = Column(String, default="")
