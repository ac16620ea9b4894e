from sqlalchemy import Column, Integer, String, Float, Text, DateTime, JSON, func
from sqlalchemy.orm import DeclarativeBase

CANDIDATE_STATUSES = ("not-started", "in-progress", "completed")


class Base(DeclarativeBase):
    pass


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    phone = Column(String, nullable=False)
    status = Column(String, nullable=False, default="not-started")
    score = Column(Float, nullable=False, default=0)
    answers = Column(JSON, nullable=False, default=list)  # list of {question, answer, score, feedback}
    summary = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
