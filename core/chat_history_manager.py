# core/chat_history_manager.py

from typing import List, Optional
from pymongo import DESCENDING
from pymongo.database import Database
from .database import CONVERSATIONS, get_database, strip_id
from .exceptions import RecordAccessError
from .models import ChatConversation, ChatMessage, Farm, FarmContext, utc_now

class ChatHistoryManager:
    """Handles all database operations for a user's advisory conversations."""
    def __init__(self, db: Optional[Database] = None):
        self.db = db if db is not None else get_database()
        self.history_collection = self.db[CONVERSATIONS]
        self.history_collection.create_index([("user_id", 1), ("created_at", -1)])
        print("---CHAT HISTORY MANAGER: Ready---")

    def get_conversations(self, user_id: str, limit: int = 10) -> List[ChatConversation]:
        """Retrieves the user's conversations, most recent first."""
        cursor = self.history_collection.find({"user_id": user_id}).sort("created_at", DESCENDING).limit(limit)
        return [ChatConversation(**strip_id(c)) for c in cursor]

    def get_conversation(self, user_id: str, conversation_id: str) -> Optional[ChatConversation]:
        data = strip_id(self.history_collection.find_one({"id": conversation_id, "user_id": user_id}))
        return ChatConversation(**data) if data else None

    def create_conversation(self, user_id: str, language: str = "en", farm: Optional[Farm] = None) -> ChatConversation:
        """Starts a conversation; the farm, when given, must already be verified as the user's."""
        farm_context = None
        if farm is not None:
            farm_context = FarmContext(
                farm_id=farm.id,
                current_crops=farm.primary_crops,
                location=farm.location.label() if farm.location else "",
            )

        conversation = ChatConversation(user_id=user_id, language=language, farm_context=farm_context)
        self.history_collection.insert_one(conversation.model_dump())
        print(f"---CHAT HISTORY MANAGER: Created conversation {conversation.id}---")
        return conversation

    def add_message(self, user_id: str, conversation_id: str, message: ChatMessage) -> str:
        """Appends a message to one of the user's conversations."""
        result = self.history_collection.update_one(
            {"id": conversation_id, "user_id": user_id},
            {
                "$push": {"messages": message.model_dump()},
                "$set": {"updated_at": utc_now()},
            },
        )
        if result.matched_count == 0:
            raise RecordAccessError("Conversation")
        print(f"---CHAT HISTORY MANAGER: Saved {message.role} message to {conversation_id}---")
        return conversation_id
