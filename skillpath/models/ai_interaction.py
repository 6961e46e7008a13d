"""AIInteraction model."""
import uuid
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey, Uuid
from skillpath.db.base import Base, utcnow


class AIInteraction(Base):
    """Ledger of calls made to the text-generation service and their token cost."""

    __tablename__ = "ai_interactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    interaction_type = Column(String(50), nullable=False)  # quiz_generation / quiz_feedback
    input_prompt = Column(Text)
    output_response = Column(Text)
    model_used = Column(String(100))
    tokens_consumed = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)
