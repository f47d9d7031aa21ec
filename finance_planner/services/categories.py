"""Category suggestion with history-based fallback"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from finance_planner.domain.categories import fallback_suggestion, find_similar
from finance_planner.domain.exceptions import CategorySuggestionError
from finance_planner.domain.models import CategorySuggestion
from finance_planner.infrastructure.clients.openai_client import CategoryAIClient
from finance_planner.infrastructure.database.repositories import TransactionRepository
from finance_planner.infrastructure.observability.metrics import category_suggestion_counter

logger = logging.getLogger(__name__)


class CategorySuggestionService:
    """Suggests a category from the user's history and, when configured, an LLM"""

    def __init__(self, transactions: TransactionRepository, client: CategoryAIClient, request_id: Optional[str] = None):
        self.transactions = transactions
        self.client = client
        self.request_id = request_id

    async def suggest(self, user_id: uuid.UUID, description: str, amount: Decimal, type_: str) -> CategorySuggestion:
        """
        Never fails: any upstream problem degrades to the best historical
        match or the catch-all category.
        """
        history = self.transactions.recent_history(user_id, type_)
        similar = find_similar(description, history)

        if not self.client.enabled:
            suggestion = fallback_suggestion(similar, "AI suggestions are not configured.")
        else:
            try:
                suggestion = await self.client.suggest_category(description, amount, type_, similar)
            except CategorySuggestionError as e:
                logger.warning(
                    f"Category suggestion failed: {e}",
                    extra={"request_id": self.request_id, "user_id": str(user_id), "step": "category_suggestion"},
                )
                suggestion = fallback_suggestion(similar, "AI suggestion unavailable.")

        category_suggestion_counter.labels(source=suggestion.source).inc()
        return suggestion

    def record_feedback(self, user_id: uuid.UUID, suggested: str, chosen: str, description: str) -> None:
        logger.info(
            "Category feedback received",
            extra={
                "request_id": self.request_id,
                "user_id": str(user_id),
                "step": "category_feedback",
                "suggested_category": suggested,
                "chosen_category": chosen,
                "accepted": suggested == chosen,
                "description": description,
            },
        )
