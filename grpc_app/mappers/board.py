from __future__ import annotations

from typing import Iterable

from google.protobuf import empty_pb2

from application.dto import QuestionDTO, SubjectDTO
from grpc_app.generated import board_pb2


def subject_dto_to_proto(dto: SubjectDTO) -> board_pb2.Subject:
    return board_pb2.Subject(id=int(dto.id), title=dto.title or "", enabled=bool(dto.enabled))


def question_dto_to_proto(dto: QuestionDTO) -> board_pb2.Question:
    return board_pb2.Question(
        id=int(dto.id),
        question=dto.question or "",
        likes_count=int(dto.likes),
        subject_id=int(dto.subject_id),
    )


def subject_list_to_proto(items: Iterable[SubjectDTO]) -> board_pb2.SubjectList:
    return board_pb2.SubjectList(subject_list=[subject_dto_to_proto(s) for s in items])


def question_list_to_proto(items: Iterable[QuestionDTO]) -> board_pb2.QuestionList:
    return board_pb2.QuestionList(question_list=[question_dto_to_proto(q) for q in items])


Empty = empty_pb2.Empty  # alias
