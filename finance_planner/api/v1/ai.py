"""Category suggestion endpoints"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from finance_planner.api.v1.schemas import (
    CategoriesResponse,
    FeedbackRequest,
    MessageResponse,
    SuggestionRequest,
    SuggestionResponse,
)
from finance_planner.api.dependencies import get_category_client, get_current_user, get_request_id
from finance_planner.domain.categories import DEFAULT_CATEGORIES
from finance_planner.infrastructure.clients.openai_client import CategoryAIClient
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import TransactionRepository
from finance_planner.infrastructure.database.session import get_db
from finance_planner.services.categories import CategorySuggestionService

router = APIRouter()


def get_suggestion_service(
    request: Request,
    db: Session = Depends(get_db),
    client: CategoryAIClient = Depends(get_category_client),
) -> CategorySuggestionService:
    return CategorySuggestionService(TransactionRepository(db), client, get_request_id(request))


@router.post("/suggest-category", response_model=SuggestionResponse)
async def suggest_category(
    body: SuggestionRequest,
    current_user: User = Depends(get_current_user),
    service: CategorySuggestionService = Depends(get_suggestion_service),
):
    """
    Suggest a category for a transaction being entered.

    Falls back to the caller's history (or "Outros") when the model is not
    configured or fails, so this endpoint does not error on upstream problems.
    """
    suggestion = await service.suggest(current_user.id, body.description, body.amount, body.type)
    return {"suggestion": suggestion}


@router.post("/feedback", response_model=MessageResponse)
def feedback(
    body: FeedbackRequest,
    current_user: User = Depends(get_current_user),
    service: CategorySuggestionService = Depends(get_suggestion_service),
):
    service.record_feedback(current_user.id, body.original_suggestion.category, body.user_choice, body.description)
    return {"message": "Feedback recorded"}


@router.get("/categories", response_model=CategoriesResponse)
def categories(current_user: User = Depends(get_current_user)):
    return DEFAULT_CATEGORIES
