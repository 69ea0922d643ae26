# ------------------------------
# Keyword heuristics for memory entries.
# Pure functions over the tables in services.constants.
# ------------------------------

import re
from typing import List

from services.constants import (
    ENTITY_EXCLUSIONS,
    IMPORTANCE_BASE,
    IMPORTANCE_KEYWORD_BONUS,
    IMPORTANCE_KEYWORDS,
    IMPORTANCE_LONG_RESPONSE_BONUS,
    IMPORTANCE_LONG_RESPONSE_CHARS,
    IMPORTANCE_MAX,
    IMPORTANCE_MIN,
    KEYWORD_STOPWORDS,
    MAX_KEYWORDS,
    TOPIC_VOCABULARY,
)

def _dedupe(items: List[str]) -> List[str]:
    '''
      Remove duplicates, keeping first-seen order.
    '''
    return list(dict.fromkeys(items))

def calculate_importance(user_message: str, assistant_response: str) -> int:
    '''
      Score how useful a turn is likely to be later, on a 1-10 scale.
    '''
    importance = IMPORTANCE_BASE

    user_words = user_message.lower()
    if any(keyword in user_words for keyword in IMPORTANCE_KEYWORDS):
        importance += IMPORTANCE_KEYWORD_BONUS

    if len(assistant_response) > IMPORTANCE_LONG_RESPONSE_CHARS:
        importance += IMPORTANCE_LONG_RESPONSE_BONUS

    return clamp_importance(importance)

def clamp_importance(importance: int) -> int:
    return max(IMPORTANCE_MIN, min(int(importance), IMPORTANCE_MAX))

def extract_topic(message: str) -> str:
    '''
      First vocabulary topic found in the message, else its first 3 words.
    '''
    lowered = message.lower()
    for topic in TOPIC_VOCABULARY:
        if topic in lowered:
            return topic

    return " ".join(lowered.split()[:3])

def extract_entities(text: str) -> List[str]:
    '''
      Capitalized tokens longer than 3 chars, minus common sentence starters.
    '''
    entities = [
        word for word in text.split()
        if len(word) > 3 and word[0].isupper() and word not in ENTITY_EXCLUSIONS
    ]
    return _dedupe(entities)

def extract_keywords(text: str) -> List[str]:
    cleaned = re.sub(r"[^\w\s]", "", text.lower())
    words = [
        word for word in cleaned.split()
        if len(word) > 3 and word not in KEYWORD_STOPWORDS
    ]
    return _dedupe(words)[:MAX_KEYWORDS]
