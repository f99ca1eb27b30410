"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from pydantic import BaseModel, ConfigDict, Field

from domain.board.entity import Question, Subject


class DTOBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class SubjectDTO(DTOBase):
    """主题响应DTO"""
    id: int
    title: str
    enabled: bool

    @classmethod
    def from_entity(cls, subject: Subject) -> "SubjectDTO":
        return cls(id=subject.id, title=subject.title, enabled=subject.enabled)


class QuestionDTO(DTOBase):
    """问题响应DTO"""
    id: int
    question: str
    likes: int = Field(0, description="点赞数")
    subject_id: int = 0

    @classmethod
    def from_entity(cls, question: Question) -> "QuestionDTO":
        return cls(
            id=question.id,
            question=question.question,
            likes=question.likes,
            subject_id=question.subject_id,
        )


class NewSubjectDTO(DTOBase):
    """主题创建DTO（空标题由应用服务校验）"""
    title: str = Field("", description="主题标题")


class NewQuestionDTO(DTOBase):
    """问题创建DTO"""
    subject_id: int = Field(..., description="所属主题ID")
    question: str = Field("", description="问题内容")


class MessageDTO(DTOBase):
    """通用消息DTO"""
    message: str
