from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text

from fitsocial.db.base_class import Base
from fitsocial.utils.time import utcnow


class Workout(Base):
    __tablename__ = "workouts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    start_time = Column(DateTime, nullable=False, default=utcnow)
    end_time = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    use_metric = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, index=True)
    workout_id = Column(Integer, ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class WorkoutSet(Base):
    __tablename__ = "sets"

    id = Column(Integer, primary_key=True, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False, index=True)
    weight = Column(Float, nullable=True)
    reps = Column(Integer, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds, for cardio
    distance = Column(Float, nullable=True)
    rpe = Column(Integer, nullable=True)  # rate of perceived exertion, 1-10
    created_at = Column(DateTime, nullable=False, default=utcnow)
