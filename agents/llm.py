# agents/llm.py

from typing import Optional
from langchain_core.language_models import BaseChatModel
from core.config import settings

def build_chat_model() -> Optional[BaseChatModel]:
    """Returns the configured chat model, or None to run the agents in mock mode."""
    if not settings.openai_api_key:
        print("---LLM: No OpenAI key configured, agents will use mock responses---")
        return None

    from langchain_openai import ChatOpenAI
    return ChatOpenAI(model=settings.openai_model, api_key=settings.openai_api_key)
