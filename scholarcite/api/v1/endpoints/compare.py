"""Free-form text comparison endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from scholarcite.api.v1.schemas import CompareRequest, CompareResponse
from scholarcite.utils.diff_engine import sequence_diff, word_diff

router = APIRouter(prefix="/v1", tags=["compare"])


@router.post("/compare", response_model=CompareResponse)
async def compare_texts(request: CompareRequest) -> CompareResponse:
    """Highlight the words of the revised text that are new.

    Args:
        request: Baseline and revised text plus the diff strategy

    Returns:
        Ordered tokens with their classification and rendered HTML
    """
    diff = sequence_diff if request.mode == "sequence" else word_diff
    tokens = diff(request.baseline_text, request.revised_text)
    return CompareResponse.from_tokens(tokens, request.mode)
