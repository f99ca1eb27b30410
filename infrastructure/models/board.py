"""
看板数据库模型 - SQLAlchemy ORM模型
注意：仅用于建表与迁移，记录存储网关直接执行参数化语句
"""
from sqlalchemy import Boolean, Column, ForeignKey, Integer, Text, text
from sqlalchemy.sql import expression

from .base import Base


class SubjectModel(Base):
    """讨论主题表"""
    __tablename__ = "subject"

    id = Column(Integer, primary_key=True)
    title = Column(Text, nullable=False, comment="标题")
    enabled = Column(Boolean, nullable=False, server_default=expression.true(), comment="是否启用")

    def __repr__(self):
        return f"<SubjectModel(id={self.id}, title='{self.title}', enabled={self.enabled})>"


class QuestionModel(Base):
    """问题表"""
    __tablename__ = "question"

    id = Column(Integer, primary_key=True)
    question = Column(Text, nullable=False, comment="问题内容")
    subject_id = Column(Integer, ForeignKey("subject.id"), nullable=False, index=True, comment="所属主题")
    likes = Column(Integer, nullable=False, server_default=text("0"), comment="点赞数")

    def __repr__(self):
        return f"<QuestionModel(id={self.id}, subject_id={self.subject_id}, likes={self.likes})>"
