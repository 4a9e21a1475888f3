from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from fitsocial.db.base_class import Base
from fitsocial.utils.time import utcnow


class Program(Base):
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    # Built-in catalogue programs have no creator, only an author label
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    author = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)  # strength, cardio, mixed
    content = Column(JSON, nullable=False, default=dict)
    is_public = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class ProgramRating(Base):
    __tablename__ = "program_ratings"
    __table_args__ = (
        UniqueConstraint("program_id", "user_id", name="uq_program_ratings_user"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_program_ratings_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
