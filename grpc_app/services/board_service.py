from __future__ import annotations

import grpc

from application.dto import NewQuestionDTO, NewSubjectDTO
from application.services.board_service import BoardApplicationService
from grpc_app.generated import board_pb2, board_pb2_grpc
from grpc_app.interceptors.store import get_call_store
from grpc_app.mappers.board import (
    Empty,
    question_dto_to_proto,
    question_list_to_proto,
    subject_dto_to_proto,
    subject_list_to_proto,
)


class BoardService(board_pb2_grpc.BoardServicer):
    """Thin adapter from ``board.Board`` RPCs to the application service.

    The record store comes from the call context (bound by
    ``StoreSessionInterceptor``) and is handed to the application service
    explicitly. Calling outside an intercepted RPC is a wiring error.
    """

    def __init__(self, *, strict: bool = True) -> None:
        self._strict = strict

    def _svc(self) -> BoardApplicationService:
        store = get_call_store()
        if store is None:
            raise RuntimeError("no record store bound to the call")
        return BoardApplicationService(store, strict=self._strict)

    async def ListSubjects(self, request, context: grpc.aio.ServicerContext) -> board_pb2.SubjectList:  # type: ignore[override]
        subjects = await self._svc().list_subjects()
        return subject_list_to_proto(subjects)

    async def GetSubject(self, request, context: grpc.aio.ServicerContext) -> board_pb2.Subject:  # type: ignore[override]
        subject = await self._svc().get_subject(int(request.id))
        return subject_dto_to_proto(subject)

    async def CreateSubject(self, request, context: grpc.aio.ServicerContext) -> board_pb2.Subject:  # type: ignore[override]
        subject = await self._svc().create_subject(NewSubjectDTO(title=request.title))
        return subject_dto_to_proto(subject)

    async def DeleteSubject(self, request, context: grpc.aio.ServicerContext) -> Empty:  # type: ignore[override]
        await self._svc().delete_subject(int(request.id))
        return Empty()

    async def ListQuestions(self, request, context: grpc.aio.ServicerContext) -> board_pb2.QuestionList:  # type: ignore[override]
        questions = await self._svc().list_questions(int(request.id))
        return question_list_to_proto(questions)

    async def GetQuestion(self, request, context: grpc.aio.ServicerContext) -> board_pb2.Question:  # type: ignore[override]
        question = await self._svc().get_question(int(request.id))
        return question_dto_to_proto(question)

    async def CreateQuestion(self, request, context: grpc.aio.ServicerContext) -> Empty:  # type: ignore[override]
        await self._svc().create_question(
            NewQuestionDTO(subject_id=int(request.subject_id), question=request.question)
        )
        return Empty()

    async def DeleteQuestion(self, request, context: grpc.aio.ServicerContext) -> Empty:  # type: ignore[override]
        await self._svc().delete_question(int(request.id))
        return Empty()

    async def Like(self, request, context: grpc.aio.ServicerContext) -> Empty:  # type: ignore[override]
        await self._svc().like(int(request.id))
        return Empty()

    async def Unlike(self, request, context: grpc.aio.ServicerContext) -> Empty:  # type: ignore[override]
        await self._svc().unlike(int(request.id))
        return Empty()
