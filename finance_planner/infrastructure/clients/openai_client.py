"""OpenAI chat-completions HTTP client for transaction category suggestions"""

import json
from decimal import Decimal
from typing import List

import httpx

from finance_planner.config import settings
from finance_planner.domain.categories import DEFAULT_CATEGORIES
from finance_planner.domain.exceptions import CategorySuggestionError
from finance_planner.domain.models import CategorySuggestion, SimilarTransaction
from finance_planner.infrastructure.observability.metrics import category_suggestion_latency_histogram

SYSTEM_PROMPT = """You categorize personal finance transactions.

Available categories for {kind}:
{categories}

Analyze the description and the amount, use the user's similar transactions as
reference and pick the most appropriate category. Reply ONLY with JSON:
{{"category": "<category>", "confidence": <0..1>, "explanation": "<short reason>"}}"""


class CategoryAIClient:
    """Client for an OpenAI-compatible chat completions API"""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = base_url or settings.openai_base_url
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.http_timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def build_messages(
        self, description: str, amount: Decimal, type_: str, similar: List[SimilarTransaction]
    ) -> List[dict]:
        examples = "\n".join(f'"{s.description}" -> {s.category}' for s in similar[:3])
        user_prompt = (
            f'Transaction to categorize:\nDescription: "{description}"\n'
            f"Amount: {amount:.2f}\nType: {type_}\n\n"
            f"Similar transactions:\n{examples or 'None found'}"
        )
        system_prompt = SYSTEM_PROMPT.format(
            kind="income" if type_ == "income" else "expenses",
            categories=", ".join(DEFAULT_CATEGORIES[type_]),
        )
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    async def suggest_category(
        self, description: str, amount: Decimal, type_: str, similar: List[SimilarTransaction]
    ) -> CategorySuggestion:
        """
        Ask the model for a category.

        Raises:
            CategorySuggestionError: On missing key, timeout, HTTP errors, or an unparseable reply
        """
        if not self.enabled:
            raise CategorySuggestionError("OpenAI API key not configured")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                with category_suggestion_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/chat/completions",
                        headers={"Authorization": f"Bearer {self.api_key}"},
                        json={
                            "model": self.model,
                            "messages": self.build_messages(description, amount, type_, similar),
                            "temperature": 0.3,
                            "max_tokens": 200,
                        },
                    )
                response.raise_for_status()
                content = response.json()["choices"][0]["message"]["content"]
                data = json.loads(content)

                category = data["category"]
                confidence = float(data["confidence"])
                explanation = data["explanation"]
                if not category or not explanation:
                    raise ValueError("empty category or explanation")

                return CategorySuggestion(
                    category=str(category)[:50],
                    confidence=max(0.0, min(1.0, confidence)),
                    explanation=str(explanation)[:500],
                    source="ai",
                )

            except httpx.TimeoutException as e:
                raise CategorySuggestionError(f"OpenAI timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise CategorySuggestionError(f"OpenAI error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise CategorySuggestionError(f"OpenAI unreachable: {e}") from e
            except (KeyError, IndexError, ValueError, TypeError) as e:
                raise CategorySuggestionError(f"Invalid reply from OpenAI: {e}") from e
