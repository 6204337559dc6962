# agents/farm_advisor.py

import random
from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from core.chat_history_manager import ChatHistoryManager
from core.exceptions import AIServiceError, RecordAccessError
from core.models import ChatConversation, ChatMessage

BASE_PROMPT = (
    "You are an expert agricultural AI assistant specializing in farming, crop management, "
    "and agricultural advice. Provide helpful, accurate, and practical advice for farmers. "
    "Keep responses concise but informative and focus on practical solutions that small-scale "
    "farmers can implement."
)

LANGUAGE_INSTRUCTIONS = {
    "ml": "Respond in Malayalam (മലയാളം). Use simple, clear language that farmers can easily understand.",
    "hi": "Respond in Hindi (हिंदी). Use simple, clear language that farmers can easily understand.",
}

MOCK_RESPONSES = [
    "Based on your location and crops, I recommend regular monitoring for pests. Consider using neem oil as a natural pesticide.",
    "For better yield, ensure proper irrigation and soil testing. The monsoon season is approaching, so prepare for water management.",
    "I suggest crop rotation to maintain soil health. Consider planting legumes in your next cycle to naturally enrich the soil with nitrogen.",
    "Monitor for common diseases like leaf spot and powdery mildew. Early detection and treatment can save your crops.",
]


def build_system_prompt(conversation: ChatConversation, language: str) -> str:
    """The advisor's instructions, tailored to the conversation's farm and language."""
    prompt = BASE_PROMPT
    context = conversation.farm_context
    if context:
        crops = ", ".join(context.current_crops) or "None specified"
        prompt += (
            "\n\nFarm Context:"
            f"\n- Location: {context.location or 'Unknown'}"
            f"\n- Primary Crops: {crops}"
            "\n\nTailor your advice to these specific crops and location."
        )
    if language in LANGUAGE_INSTRUCTIONS:
        prompt += "\n\n" + LANGUAGE_INSTRUCTIONS[language]
    return prompt


class FarmAdvisorAgent:
    """Answers farming questions inside a stored conversation."""

    def __init__(self, chat_history_manager: ChatHistoryManager, llm: Optional[BaseChatModel] = None,
                 rng: Optional[random.Random] = None):
        self.chat_history_manager = chat_history_manager
        self.llm = llm
        self.rng = rng or random.Random()
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", "{system_prompt}"),
            MessagesPlaceholder("history"),
            ("human", "{question}"),
        ])

    def _generate(self, conversation: ChatConversation, message: str, language: str) -> str:
        if self.llm is None:
            return self.rng.choice(MOCK_RESPONSES)

        history = [
            HumanMessage(content=m.content) if m.role == "user" else AIMessage(content=m.content)
            for m in conversation.messages
        ]
        chain = self.prompt | self.llm
        try:
            response = chain.invoke({
                "system_prompt": build_system_prompt(conversation, language),
                "history": history,
                "question": message,
            })
        except Exception as e:
            print(f"---FARM ADVISOR: LLM ERROR: {type(e).__name__} - {e}---")
            raise AIServiceError("Failed to generate AI response. Please try again.") from e

        if not response.content:
            raise AIServiceError("No response generated from the language model")
        return response.content

    def get_chat_response(self, user_id: str, conversation_id: str, message: str, language: str = "en") -> str:
        print("---FARM ADVISOR---")
        conversation = self.chat_history_manager.get_conversation(user_id, conversation_id)
        if conversation is None:
            raise RecordAccessError("Conversation")

        reply = self._generate(conversation, message, language)

        self.chat_history_manager.add_message(
            user_id, conversation_id, ChatMessage(role="user", content=message, language=language)
        )
        self.chat_history_manager.add_message(
            user_id, conversation_id, ChatMessage(role="assistant", content=reply, language=language)
        )
        return reply
