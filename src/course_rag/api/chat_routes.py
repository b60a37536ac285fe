"""
Chat Routes

Question answering over the ingested course materials.

Both "no corpus loaded" and "not in the course materials" are successful
(200) responses; they differ in `answer` text and in `outcome`.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .models import ChatRequest, ChatResponse
from .dependencies import get_answer_assembler, get_settings
from ..answers.assembler import AnswerAssembler
from ..config import Settings

router = APIRouter(tags=["chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Answer a question from the course materials",
    status_code=status.HTTP_200_OK,
)
@router.post(
    "/",
    response_model=ChatResponse,
    include_in_schema=False,
)
async def chat(
    req: ChatRequest,
    assembler: Annotated[AnswerAssembler, Depends(get_answer_assembler)],
    config: Annotated[Settings, Depends(get_settings)],
) -> ChatResponse:
    """
    Retrieve relevant chunks and answer the question from them.
    """
    if not config.openai_api_key.get_secret_value():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing OpenAI API key",
        )

    query = req.query.strip()
    if not query:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing 'query' in body",
        )

    # Upstream and store failures are mapped by the registered error handlers
    answer = await assembler.answer(query)

    return ChatResponse(
        answer=answer.text,
        outcome=answer.outcome,
        sources=answer.sources,
    )
