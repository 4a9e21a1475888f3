from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from fitsocial.db.base_class import Base
from fitsocial.utils.time import utcnow


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workout_id = Column(Integer, ForeignKey("workouts.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    image = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
