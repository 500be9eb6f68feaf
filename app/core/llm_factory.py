from functools import lru_cache
from langchain_openai import ChatOpenAI
from app.core.config import settings

@lru_cache(maxsize=1)
def get_urgency_llm() -> ChatOpenAI | None:
    """
    긴급도 점수 산정용 (일관성 필요, JSON 출력 강제)
    Temperature: 0.3
    """
    if not settings.OPENAI_API_KEY:
        return None

    return ChatOpenAI(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL_URGENCY,
        temperature=settings.URGENCY_LLM_TEMPERATURE,
        max_tokens=settings.URGENCY_LLM_MAX_TOKENS,
        timeout=settings.URGENCY_LLM_TIMEOUT_SECONDS,
        max_retries=1,
        model_kwargs={"response_format": {"type": "json_object"}}
    )
