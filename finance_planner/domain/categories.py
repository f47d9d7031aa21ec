"""Category suggestion heuristics - keyword similarity over transaction history"""

from typing import Dict, Iterable, List, Tuple

from finance_planner.domain.models import CategorySuggestion, SimilarTransaction

DEFAULT_CATEGORIES: Dict[str, List[str]] = {
    "income": ["Salário", "Freelance", "Investimentos", "Vendas", "Bônus", "Outros"],
    "expense": [
        "Alimentação",
        "Transporte",
        "Moradia",
        "Saúde",
        "Educação",
        "Lazer",
        "Compras",
        "Serviços",
        "Assinaturas",
        "Outros",
    ],
}

FALLBACK_CATEGORY = "Outros"
MIN_SIMILARITY = 0.1


def _words(text: str) -> List[str]:
    return text.lower().split()


def similarity(description: str, other: str) -> float:
    """Share of meaningful words (longer than 2 chars) two descriptions have in common"""
    words = _words(description)
    other_words = _words(other)
    if not words or not other_words:
        return 0.0

    shared = [w for w in words if len(w) > 2 and w in other_words]
    return len(shared) / max(len(words), len(other_words))


def find_similar(description: str, history: Iterable[Tuple[str, str]], limit: int = 5) -> List[SimilarTransaction]:
    """
    Rank (description, category) history pairs by similarity to description.

    Only pairs scoring above MIN_SIMILARITY are kept.
    """
    scored = [
        SimilarTransaction(description=d, category=c, score=similarity(description, d))
        for d, c in history
        if c
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return [s for s in scored[:limit] if s.score > MIN_SIMILARITY]


def fallback_suggestion(similar: List[SimilarTransaction], reason: str) -> CategorySuggestion:
    """Best historical match, or the catch-all category when there is none"""
    if similar:
        best = similar[0]
        return CategorySuggestion(
            category=best.category,
            confidence=round(best.score, 2),
            explanation=f"Similar to \"{best.description}\". {reason}",
            source="history",
        )

    return CategorySuggestion(
        category=FALLBACK_CATEGORY,
        confidence=0.1,
        explanation=f"No similar transactions found. {reason}",
        source="default",
    )
