"""
看板API路由 - 主题与问题
"""
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_board_service
from application.dto import MessageDTO, NewQuestionDTO, NewSubjectDTO, QuestionDTO, SubjectDTO
from application.services.board_service import BoardApplicationService
from core.response import Response as ApiResponse, success_response


router = APIRouter(tags=["看板"])


@router.get("/subjects", summary="主题列表", response_model=ApiResponse[List[SubjectDTO]])
async def list_subjects(service: BoardApplicationService = Depends(get_board_service)):
    subjects = await service.list_subjects()
    return success_response(data=subjects)


@router.get("/subjects/{subject_id}", summary="获取主题", response_model=ApiResponse[SubjectDTO])
async def get_subject(subject_id: int, service: BoardApplicationService = Depends(get_board_service)):
    """
    获取单个主题

    不存在的ID返回零值主题（id=0），与 gRPC 接口一致
    """
    subject = await service.get_subject(subject_id)
    return success_response(data=subject)


@router.post("/subjects", summary="创建主题", response_model=ApiResponse[SubjectDTO])
async def create_subject(data: NewSubjectDTO, service: BoardApplicationService = Depends(get_board_service)):
    """
    创建主题

    - **title**: 主题标题（不能为空）
    """
    subject = await service.create_subject(data)
    return success_response(data=subject, message="Subject created")


@router.delete("/subjects/{subject_id}", summary="删除主题", response_model=ApiResponse[MessageDTO])
async def delete_subject(subject_id: int, service: BoardApplicationService = Depends(get_board_service)):
    await service.delete_subject(subject_id)
    return success_response(data=MessageDTO(message="Subject deleted"))


@router.get(
    "/subjects/{subject_id}/questions",
    summary="主题下的问题列表",
    response_model=ApiResponse[List[QuestionDTO]],
)
async def list_questions(subject_id: int, service: BoardApplicationService = Depends(get_board_service)):
    """按点赞数降序、问题文本升序返回"""
    questions = await service.list_questions(subject_id)
    return success_response(data=questions)


@router.get("/questions/{question_id}", summary="获取问题", response_model=ApiResponse[QuestionDTO])
async def get_question(question_id: int, service: BoardApplicationService = Depends(get_board_service)):
    question = await service.get_question(question_id)
    return success_response(data=question)


@router.post("/questions", summary="提交问题", response_model=ApiResponse[MessageDTO])
async def create_question(data: NewQuestionDTO, service: BoardApplicationService = Depends(get_board_service)):
    """
    向主题提交问题

    - **subject_id**: 主题ID（必须存在且已启用）
    - **question**: 问题内容（不能为空）
    """
    await service.create_question(data)
    return success_response(data=MessageDTO(message="Question created"))


@router.delete("/questions/{question_id}", summary="删除问题", response_model=ApiResponse[MessageDTO])
async def delete_question(question_id: int, service: BoardApplicationService = Depends(get_board_service)):
    await service.delete_question(question_id)
    return success_response(data=MessageDTO(message="Question deleted"))


@router.post("/questions/{question_id}/like", summary="点赞", response_model=ApiResponse[MessageDTO])
async def like(question_id: int, service: BoardApplicationService = Depends(get_board_service)):
    await service.like(question_id)
    return success_response(data=MessageDTO(message="Liked"))


@router.post("/questions/{question_id}/unlike", summary="取消点赞", response_model=ApiResponse[MessageDTO])
async def unlike(question_id: int, service: BoardApplicationService = Depends(get_board_service)):
    """点赞数为0时返回 409"""
    await service.unlike(question_id)
    return success_response(data=MessageDTO(message="Unliked"))
