# ------------------------------
# Module: constants.py
# Description: Constants and deployment settings for the services
# ------------------------------

import os
from dotenv import load_dotenv

load_dotenv()

# :::::: Provider Related :::::: #

# One of "openai", "hf" or "hash". Network providers without credentials resolve to "hash".
EMBED_PROVIDER = os.environ.get("EMBED_PROVIDER", "openai")

OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "").strip()
PINECONE_API_KEY = os.environ.get("PINECONE_API_KEY", "").strip()
PERPLEXITY_API_KEY = os.environ.get("PERPLEXITY_API_KEY", "").strip()
HF_API_KEY = os.environ.get("HF_API_KEY", "").strip()

# :::::: Model Related :::::: #

CLASSIFIER_MODEL = os.environ.get("CLASSIFIER_MODEL", "gpt-4o-mini")
SYNTHESIS_MODEL = os.environ.get("SYNTHESIS_MODEL", "gpt-4o-mini")
NARRATIVE_MODEL = os.environ.get("NARRATIVE_MODEL", "gpt-4o-mini")

CLASSIFIER_TEMPERATURE = 0.1
SYNTHESIS_TEMPERATURE = 0.2
NARRATIVE_TEMPERATURE = 0.4

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"
PERPLEXITY_MODEL = os.environ.get("PERPLEXITY_MODEL", "sonar")

HF_CHAT_URL = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL = os.environ.get("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct")

# Seconds
CONTENT_API_TIMEOUT = 60.0

# :::::: Embedding Related :::::: #

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

HF_EMBEDDING_MODEL = "all-MiniLM-L6-v2"

# Every stored / queried vector is normalized to this length
EMBEDDING_DIMENSION = int(os.environ.get("EMBEDDING_DIMENSION", 1536))

# Scale applied to interpolated values when padding a short vector
EMBEDDING_PAD_SCALE = 0.1

# Batch embedding runs small sequential groups to stay under rate limits
EMBED_BATCH_SIZE = int(os.environ.get("EMBED_BATCH_SIZE", 3))
EMBED_BATCH_DELAY_SECONDS = float(os.environ.get("EMBED_BATCH_DELAY_SECONDS", 0.2))

# Weight of the exact-text component in the offline hashing embedder
HASH_EMBEDDING_NOISE_WEIGHT = 0.35

# :::::: Vector Store Related :::::: #

PINECONE_INDEX_NAME = os.environ.get("PINECONE_INDEX_NAME", "user-memory")
PINECONE_NAMESPACE = os.environ.get("PINECONE_NAMESPACE", "user-memory-namespace")

# :::::: Memory Related :::::: #

MEMORY_SEARCH_LIMIT = int(os.environ.get("MEMORY_SEARCH_LIMIT", 5))
MEMORY_MIN_SIMILARITY = float(os.environ.get("MEMORY_MIN_SIMILARITY", 0.7))

# Query used to approximate "list all" since the vector store only supports similarity queries
RECENT_MEMORY_QUERY = "user conversation history"
RECENT_MEMORY_LIMIT = 10

CONTEXT_RELEVANT_COUNT = 3
CONTEXT_RECENT_COUNT = 3

IMPORTANCE_BASE = 5
IMPORTANCE_KEYWORD_BONUS = 2
IMPORTANCE_LONG_RESPONSE_BONUS = 1
IMPORTANCE_LONG_RESPONSE_CHARS = 500
IMPORTANCE_MIN = 1
IMPORTANCE_MAX = 10

IMPORTANCE_KEYWORDS = ['remember', 'important', 'preference', 'like', 'dislike', 'always', 'never']

TOPIC_VOCABULARY = ['science', 'technology', 'history', 'art', 'music', 'literature',
                    'politics', 'economics', 'health', 'education']

ENTITY_EXCLUSIONS = {'The', 'This', 'That', 'What', 'When', 'Where', 'How', 'Why'}

KEYWORD_STOPWORDS = {
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'is', 'are', 'was', 'were', 'be', 'been', 'being', 'have', 'has', 'had', 'do', 'does',
    'did', 'will', 'would', 'could', 'should', 'this', 'that', 'these', 'those', 'what',
    'when', 'where', 'which', 'about', 'from', 'into', 'than', 'then', 'them', 'they',
}

MAX_KEYWORDS = 10

# :::::: Classification Related :::::: #

# Ordered by priority, the first matching group decides the visualization kind
VISUALIZATION_KEYWORD_GROUPS = [
    ("pie_chart", r"\b(distribution|percentage|percent|proportion|proportions|share|breakdown|composition|allocation|budget|spending)\b"),
    ("bar_chart", r"\b(compare|comparing|comparison|versus|vs|ranking|rank|ranked|performance|between)\b"),
    ("line_chart", r"\b(trend|trends|growth|over time|progress|forecast|projection|evolution|change|monthly|yearly)\b"),
    ("timeline", r"\b(schedule|roadmap|timeline|chronology|history|sequence|events|milestones|phases)\b"),
    ("comparison", r"\b(contrast|difference|differences|similarity|similarities|pros|cons|advantages|disadvantages|side by side)\b"),
    ("table", r"\b(list|table|details|records|entries|rows|columns|structured|spreadsheet)\b"),
    ("infographic", r"\b(infographic|visual|illustrated|cheat sheet|guide|process)\b"),
]

DEFAULT_VISUALIZATION_KIND = "text"

REQUIRES_MEMORY_PATTERN = r"\b(my|mine|our|ours|company|organization|team|personal|custom|uploaded|dataset|i discussed|we discussed|remember)\b"
REQUIRES_EXTERNAL_PATTERN = r"\b(latest|current|recent|news|today|now|updated|live|real-time|this year)\b"
REQUIRES_IMAGE_PATTERN = r"\b(diagram|illustration|illustrate|draw|drawing|graphic|image|picture|sketch)\b"

MULTI_CONCEPT_PATTERN = r"\b(and|or|also|plus|too|including)\b"
DASHBOARD_COMPLEXITY_PATTERN = r"\b(dashboard|comprehensive|detailed|full|complete)\b"
MULTI_CHART_WORD_COUNT = 20

# :::::: Retrieval Related :::::: #

DEGRADED_CHUNK_RELEVANCE = 0.1

MEMORY_CITATION_URL = "#user-memory"
CITATION_SNIPPET_CHARS = 200

VISUALIZATION_CONTEXT_HINTS = {
    "pie_chart": "Focus on proportional relationships and percentage breakdowns for pie chart visualization",
    "bar_chart": "Emphasize comparative values and categorical data for bar chart representation",
    "line_chart": "Highlight trends over time and sequential data points for line chart display",
    "timeline": "Organize information chronologically with key dates and milestones",
    "table": "Structure data in rows and columns with clear headers and relationships",
    "comparison": "Emphasize contrasts, similarities, and side-by-side analysis points",
}

# :::::: Synthesis Related :::::: #

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 120

SUMMARY_EXCERPT_CHARS = 200
OVERVIEW_EXCERPT_CHARS = 1000

# A line shorter than this is a candidate heading
HEADING_MAX_CHARS = 100
