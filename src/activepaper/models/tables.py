"""SQLModel table definitions for database persistence.

SQLModel records are mutable and only live inside a session; repositories
convert them to the frozen domain models before returning.

Field names match the domain models so conversion is a plain
``model_dump()`` / ``model_validate()`` round trip. Timestamps are integer
milliseconds since the epoch.

Full-text search tables (``*_fts``) are FTS5 virtual tables and are not
declared here; their DDL lives with the schema manager.
"""

from sqlalchemy import Index, UniqueConstraint
from sqlmodel import Field, SQLModel


class SchemaVersionRecord(SQLModel, table=True):
    """Single-row marker holding the applied schema version."""

    __tablename__ = "schema_version"

    version: int = Field(primary_key=True)


class DocumentRecord(SQLModel, table=True):
    __tablename__ = "documents"
    __table_args__ = (Index("idx_documents_last_opened", "last_opened_at"),)

    id: str = Field(primary_key=True)
    filename: str
    filepath: str = Field(unique=True)
    last_opened_at: int
    scroll_position: float = 0.0
    total_pages: int | None = None
    created_at: int


class InteractionRecord(SQLModel, table=True):
    __tablename__ = "interactions"
    __table_args__ = (
        Index("idx_interactions_doc", "document_id"),
        Index("idx_interactions_created", "created_at"),
    )

    id: str = Field(primary_key=True)
    document_id: str = Field(foreign_key="documents.id")
    action_type: str
    selected_text: str
    page_context: str | None = None
    response: str
    page_number: int | None = None
    scroll_position: float | None = None
    created_at: int


class ConceptRecord(SQLModel, table=True):
    __tablename__ = "concepts"

    id: str = Field(primary_key=True)
    name: str
    # casefolded name; the dedup key for get-or-create
    name_key: str = Field(unique=True)
    created_at: int


class InteractionConceptRecord(SQLModel, table=True):
    """Join table: a concept surfaced in an interaction."""

    __tablename__ = "interaction_concepts"

    interaction_id: str = Field(primary_key=True, foreign_key="interactions.id")
    concept_id: str = Field(primary_key=True, foreign_key="concepts.id")


class DocumentConceptRecord(SQLModel, table=True):
    """Join table: running tally of concept link events per document."""

    __tablename__ = "document_concepts"

    document_id: str = Field(primary_key=True, foreign_key="documents.id")
    concept_id: str = Field(primary_key=True, foreign_key="concepts.id")
    occurrence_count: int = 1


class ReviewCardRecord(SQLModel, table=True):
    __tablename__ = "review_cards"
    __table_args__ = (Index("idx_review_cards_next", "next_review_at"),)

    id: str = Field(primary_key=True)
    interaction_id: str = Field(foreign_key="interactions.id", unique=True)
    question: str
    answer: str
    next_review_at: int
    interval_days: int = 1
    ease_factor: float = 2.5
    review_count: int = 0
    created_at: int


class HighlightRecord(SQLModel, table=True):
    __tablename__ = "highlights"
    __table_args__ = (Index("idx_highlights_doc_page", "document_id", "page_number"),)

    id: str = Field(primary_key=True)
    document_id: str = Field(foreign_key="documents.id", ondelete="CASCADE")
    page_number: int
    start_offset: int
    end_offset: int
    selected_text: str
    color: str = "yellow"
    note: str | None = None
    created_at: int
    updated_at: int


class BookmarkRecord(SQLModel, table=True):
    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("document_id", "page_number", name="uq_bookmarks_document_page"),)

    id: str = Field(primary_key=True)
    document_id: str = Field(foreign_key="documents.id", ondelete="CASCADE")
    page_number: int
    label: str | None = None
    created_at: int


class ConversationRecord(SQLModel, table=True):
    __tablename__ = "conversations"
    __table_args__ = (
        Index("idx_conversations_doc", "document_id"),
        Index("idx_conversations_updated", "updated_at"),
    )

    id: str = Field(primary_key=True)
    document_id: str = Field(foreign_key="documents.id", ondelete="CASCADE")
    highlight_id: str | None = Field(default=None, foreign_key="highlights.id", ondelete="SET NULL")
    selected_text: str
    page_context: str | None = None
    page_number: int | None = None
    title: str | None = None
    created_at: int
    updated_at: int


class ConversationMessageRecord(SQLModel, table=True):
    __tablename__ = "conversation_messages"
    __table_args__ = (Index("idx_conversation_messages_conv", "conversation_id", "created_at"),)

    id: str = Field(primary_key=True)
    conversation_id: str = Field(foreign_key="conversations.id", ondelete="CASCADE")
    role: str
    content: str
    action_type: str | None = None
    created_at: int


class AIPreferencesRecord(SQLModel, table=True):
    __tablename__ = "ai_preferences"

    id: str = Field(primary_key=True)
    tone: str = "standard"
    response_length: str = "standard"
    response_format: str = "prose"
    custom_system_prompt: str | None = None
    custom_system_prompt_enabled: bool = False
    temperature: float | None = None
    max_tokens: int | None = None
    model_openai: str | None = None
    model_anthropic: str | None = None
    model_gemini: str | None = None
    model_ollama: str | None = None
    created_at: int
    updated_at: int


class CustomActionRecord(SQLModel, table=True):
    __tablename__ = "custom_actions"

    id: str = Field(primary_key=True)
    name: str
    emoji: str
    prompt_template: str
    sort_order: int = 0
    enabled: bool = True
    created_at: int
    updated_at: int


class DocumentAIContextRecord(SQLModel, table=True):
    __tablename__ = "document_ai_context"

    document_id: str = Field(primary_key=True, foreign_key="documents.id", ondelete="CASCADE")
    context_instructions: str
    enabled: bool = True
    created_at: int
    updated_at: int
