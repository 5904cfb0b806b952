from sqlalchemy import BigInteger, Column, DateTime, Integer, JSON, String, Text

from judgestore.db import Base


class SubmissionModel(Base):
    __tablename__ = 'submissions'
    # AUTOINCREMENT keeps SQLite from reusing keys, so identities stay monotonic
    __table_args__ = {'sqlite_autoincrement': True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    language = Column(JSON, nullable=False)  # Language document, copied by value
    source = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default='pending')
    total_time = Column(BigInteger)  # unset until judged
    max_memory = Column(BigInteger)
    results = Column(JSON, nullable=False, default=list)  # ordered Result documents
