"""Prompt builders and response parsers for the restaurant assistant.

Learn: Each task has fixed sampling params:
- chat:       temperature 0.7, 500 tokens, streamed
- recommend:  temperature 0.7, 200 tokens, answer is a JSON array of 5 names
- sentiment:  temperature 0.3, 50 tokens, answer is {"sentiment", "score"}

Parsers never raise; a malformed answer degrades to an empty/neutral result.
"""

import json
import re
from typing import Any, Iterable

CHAT_PARAMS = {"temperature": 0.7, "max_tokens": 500, "stream": True}
RECOMMEND_PARAMS = {"temperature": 0.7, "max_tokens": 200}
SENTIMENT_PARAMS = {"temperature": 0.3, "max_tokens": 50}

MAX_RECOMMENDATIONS = 5
SENTIMENTS = ("positive", "negative", "neutral")

_QUOTED = re.compile(r'"([^"]+)"')
_JSON_OBJECT = re.compile(r"\{.*?\}", re.DOTALL)


def _dietary_tags(item: Any) -> str:
    dietary = item.dietary or {}
    tags = [
        ("vegan", "Vegan"),
        ("vegetarian", "Vegetarian"),
        ("glutenFree", "Gluten-free"),
        ("spicy", "Spicy"),
    ]
    return " ".join(label for key, label in tags if dietary.get(key)) or "None"


# ─── Chat ────────────────────────────────────────────────


def chat_messages(
    message: str, menu_items: Iterable[Any], reservations_today: int
) -> list[dict]:
    menu = "\n".join(
        f"{item.name} - ${item.price:.2f} - {item.description} - "
        f"Available: {'Yes' if item.available else 'No'} - "
        f"Category: {item.category} - Dietary: {_dietary_tags(item)} - "
        f"Ingredients: {', '.join(item.ingredients or [])}"
        for item in menu_items
    )
    system = (
        "You are a helpful restaurant assistant chatbot. You have access to the "
        "current menu and can help with:\n"
        "- Menu items, prices, ingredients, dietary information\n"
        "- Recommendations based on preferences (vegan, vegetarian, "
        "gluten-free, spicy, etc.)\n"
        "- Reservation information\n"
        "- General restaurant questions\n\n"
        f"Current menu:\n{menu}\n\n"
        f"Today's reservations: {reservations_today} reservations scheduled.\n\n"
        "Be friendly, concise, and helpful. If asked about something not on "
        "the menu, politely say so."
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": message},
    ]


# ─── Recommendations ─────────────────────────────────────


def recommendation_messages(
    history: list[str], menu_items: Iterable[Any]
) -> list[dict]:
    history_text = (
        f"User's past orders: {', '.join(history)}"
        if history
        else "No order history available."
    )
    menu = "\n".join(
        f"{item.name} (${item.price:.2f}) - {item.description} - "
        f"Categories: {item.category} - Dietary: {_dietary_tags(item)}"
        for item in menu_items
    )
    prompt = (
        "You are a restaurant recommendation assistant. Based on the user's "
        "order history and current menu, recommend 5 dishes that the user "
        "would likely enjoy.\n\n"
        f"{history_text}\n\n"
        f"Current menu items:\n{menu}\n\n"
        "Provide exactly 5 recommendations as a JSON array of dish names only, "
        'no explanations. Format: ["Dish 1", "Dish 2", "Dish 3", "Dish 4", "Dish 5"]'
    )
    return [
        {
            "role": "system",
            "content": "You are a helpful restaurant recommendation assistant. "
            "Always respond with valid JSON arrays only.",
        },
        {"role": "user", "content": prompt},
    ]


def parse_recommendations(text: str) -> list[str]:
    """Dish names from the model's answer (JSON array, or quoted names in prose)."""
    try:
        names = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        names = _QUOTED.findall(text or "")
    if not isinstance(names, list):
        return []
    return [str(n).strip() for n in names if str(n).strip()][:MAX_RECOMMENDATIONS]


def match_menu_items(names: list[str], menu_items: list[Any]) -> list[Any]:
    """Menu items whose name contains, or is contained in, a recommended name."""
    wanted = [n.lower() for n in names]
    matched = [
        item
        for item in menu_items
        if any(n in item.name.lower() or item.name.lower() in n for n in wanted)
    ]
    return matched[:MAX_RECOMMENDATIONS]


# ─── Sentiment ───────────────────────────────────────────


def sentiment_messages(comment: str) -> list[dict]:
    prompt = (
        "Analyze the sentiment of this restaurant feedback comment. Respond "
        'with ONLY a JSON object: {"sentiment": "positive" | "negative" | '
        '"neutral", "score": number between -1 and 1}\n\n'
        f'Comment: "{comment}"'
    )
    return [
        {
            "role": "system",
            "content": "You are a sentiment analysis assistant. "
            "Always respond with valid JSON only.",
        },
        {"role": "user", "content": prompt},
    ]


def parse_sentiment(text: str) -> tuple[str, float]:
    """(sentiment, score in [-1, 1]); ("neutral", 0.0) if unreadable."""
    result: Any = None
    try:
        result = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        found = _JSON_OBJECT.search(text or "")
        if found:
            try:
                result = json.loads(found.group(0))
            except json.JSONDecodeError:
                result = None
    if not isinstance(result, dict):
        return "neutral", 0.0

    sentiment = str(result.get("sentiment") or "neutral").lower()
    if sentiment not in SENTIMENTS:
        sentiment = "neutral"
    try:
        score = float(result.get("score") or 0)
    except (TypeError, ValueError):
        score = 0.0
    return sentiment, max(-1.0, min(1.0, score))
