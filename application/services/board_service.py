"""
看板应用服务（application/services）- 主题与问题的操作契约

Every operation is a single step over store state; nothing is cached
between calls. The record store is passed in by the caller.
"""
from typing import List

from application.dto import NewQuestionDTO, NewSubjectDTO, QuestionDTO, SubjectDTO
from core.logging_config import get_logger
from domain.board.entity import Question, Subject
from domain.board.store import RecordStore
from domain.common.exceptions import (
    DomainValidationException,
    NegativeLikesException,
    QuestionNotFoundException,
    SubjectDisabledException,
    SubjectNotFoundException,
)


logger = get_logger(__name__)


SELECT_SUBJECTS = "SELECT id, title, enabled FROM subject ORDER BY id"
SELECT_SUBJECT = "SELECT id, title, enabled FROM subject WHERE id = :id"
SELECT_SUBJECT_BY_TITLE = "SELECT id, title, enabled FROM subject WHERE title = :title ORDER BY id DESC"
INSERT_SUBJECT = "INSERT INTO subject (title) VALUES (:title)"
DELETE_SUBJECT = "DELETE FROM subject WHERE id = :id"

SELECT_QUESTIONS = (
    "SELECT id, question, likes, subject_id FROM question "
    "WHERE subject_id = :subject_id ORDER BY likes DESC, question ASC"
)
SELECT_QUESTION = "SELECT id, question, likes, subject_id FROM question WHERE id = :id"
INSERT_QUESTION = "INSERT INTO question (question, subject_id) VALUES (:question, :subject_id)"
DELETE_QUESTION = "DELETE FROM question WHERE id = :id"
ADD_QUESTION_LIKE = "UPDATE question SET likes = likes + 1 WHERE id = :id"
SUB_QUESTION_LIKE = "UPDATE question SET likes = likes - 1 WHERE id = :id"


class BoardApplicationService:
    """看板应用服务 - 校验、跨实体查询与排序规则

    ``strict`` enables the explicit not-found checks: an empty question list
    is reported as an unknown subject, and like/unlike on a missing question
    fail with not-found.
    """

    def __init__(self, store: RecordStore, *, strict: bool = True):
        self._store = store
        self._strict = strict

    # Subjects

    async def list_subjects(self) -> List[SubjectDTO]:
        rows = await self._store.query(SELECT_SUBJECTS)
        return [SubjectDTO.from_entity(Subject.from_row(row)) for row in rows]

    async def get_subject(self, subject_id: int) -> SubjectDTO:
        """获取主题；不存在时返回零值记录（id=0）"""
        subject = await self._select_subject(subject_id)
        return SubjectDTO.from_entity(subject)

    async def create_subject(self, data: NewSubjectDTO) -> SubjectDTO:
        """创建主题，插入后按标题回查"""
        if not data.title.strip():
            logger.warning("create_subject_rejected", reason="empty_title")
            raise DomainValidationException("Subject title is required", field="title")

        await self._store.execute(INSERT_SUBJECT, {"title": data.title})
        rows = await self._store.query(SELECT_SUBJECT_BY_TITLE, {"title": data.title})
        subject = Subject.from_row(rows[0]) if rows else Subject.zero()
        logger.info("subject_created", subject_id=subject.id)
        return SubjectDTO.from_entity(subject)

    async def delete_subject(self, subject_id: int) -> None:
        if not subject_id:
            logger.warning("delete_subject_rejected", reason="empty_id")
            raise DomainValidationException("Subject id is required", field="id")
        await self._store.execute(DELETE_SUBJECT, {"id": subject_id})
        logger.info("subject_deleted", subject_id=subject_id)

    # Questions

    async def list_questions(self, subject_id: int) -> List[QuestionDTO]:
        """按点赞数降序、问题文本升序列出主题下的问题"""
        rows = await self._store.query(SELECT_QUESTIONS, {"subject_id": subject_id})
        if not rows and self._strict:
            logger.warning("list_questions_rejected", reason="unknown_subject", subject_id=subject_id)
            raise SubjectNotFoundException(subject_id)
        return [QuestionDTO.from_entity(Question.from_row(row)) for row in rows]

    async def get_question(self, question_id: int) -> QuestionDTO:
        """获取问题；不存在时返回零值记录（id=0）"""
        question = await self._select_question(question_id)
        return QuestionDTO.from_entity(question)

    async def create_question(self, data: NewQuestionDTO) -> None:
        """创建问题

        Checks run in a fixed order and the first failure wins: subject
        exists, subject enabled, text present, then insert.
        """
        subject = await self._select_subject(data.subject_id)
        if not subject.exists:
            logger.warning("create_question_rejected", reason="unknown_subject", subject_id=data.subject_id)
            raise SubjectNotFoundException(data.subject_id)

        if not subject.enabled:
            logger.warning("create_question_rejected", reason="subject_disabled", subject_id=subject.id)
            raise SubjectDisabledException(subject.id)

        if not data.question:
            logger.warning("create_question_rejected", reason="empty_question", subject_id=subject.id)
            raise DomainValidationException("Question text is required", field="question")

        await self._store.execute(
            INSERT_QUESTION, {"question": data.question, "subject_id": data.subject_id}
        )
        logger.info("question_created", subject_id=data.subject_id)

    async def delete_question(self, question_id: int) -> None:
        if not question_id:
            logger.warning("delete_question_rejected", reason="empty_id")
            raise DomainValidationException("Question id is required", field="id")
        await self._store.execute(DELETE_QUESTION, {"id": question_id})
        logger.info("question_deleted", question_id=question_id)

    # Likes

    async def like(self, question_id: int) -> None:
        affected = await self._store.execute(ADD_QUESTION_LIKE, {"id": question_id})
        if not affected and self._strict:
            logger.warning("like_rejected", reason="unknown_question", question_id=question_id)
            raise QuestionNotFoundException(question_id)

    async def unlike(self, question_id: int) -> None:
        # check and decrement are separate round-trips; concurrent unlikes can both pass the check
        question = await self._select_question(question_id)
        if not question.exists and self._strict:
            logger.warning("unlike_rejected", reason="unknown_question", question_id=question_id)
            raise QuestionNotFoundException(question_id)

        if question.likes <= 0:
            logger.warning("unlike_rejected", reason="negative_likes", question_id=question_id)
            raise NegativeLikesException(question_id, question.likes)

        await self._store.execute(SUB_QUESTION_LIKE, {"id": question_id})

    async def _select_subject(self, subject_id: int) -> Subject:
        rows = await self._store.query(SELECT_SUBJECT, {"id": subject_id})
        return Subject.from_row(rows[0]) if rows else Subject.zero()

    async def _select_question(self, question_id: int) -> Question:
        rows = await self._store.query(SELECT_QUESTION, {"id": question_id})
        return Question.from_row(rows[0]) if rows else Question.zero()
