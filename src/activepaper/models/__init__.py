from activepaper.models.annotation import Bookmark, BookmarkCreate, BookmarkPatch, Highlight, HighlightCreate, HighlightPatch
from activepaper.models.concept import Concept, ConceptDocumentUsage, ConceptGraph, ConceptLink, ConceptWithOccurrences
from activepaper.models.conversation import (
    Conversation,
    ConversationCreate,
    ConversationMessage,
    ConversationPatch,
    ConversationSummary,
    ConversationWithMessages,
)
from activepaper.models.document import Document, DocumentCreate, DocumentPatch
from activepaper.models.enums import ActionType, MessageRole, ResponseFormat, ResponseLength, ResponseTone
from activepaper.models.interaction import (
    CompletionRecord,
    DailyActivity,
    DocumentActivity,
    Interaction,
    InteractionCreate,
    InteractionWithDocument,
)
from activepaper.models.preferences import (
    AIPreferences,
    AIPreferencesPatch,
    CustomAction,
    CustomActionCreate,
    CustomActionPatch,
    DocumentAIContext,
)
from activepaper.models.review import ReviewCard, ReviewCardCreate, ReviewCardWithContext, ReviewSchedule
from activepaper.models.search import ConceptSearchResult, DocumentSearchResult, InteractionSearchResult, SearchResults

__all__ = [
    "ActionType",
    "AIPreferences",
    "AIPreferencesPatch",
    "Bookmark",
    "BookmarkCreate",
    "BookmarkPatch",
    "CompletionRecord",
    "Concept",
    "ConceptDocumentUsage",
    "ConceptGraph",
    "ConceptLink",
    "ConceptSearchResult",
    "ConceptWithOccurrences",
    "Conversation",
    "ConversationCreate",
    "ConversationMessage",
    "ConversationPatch",
    "ConversationSummary",
    "ConversationWithMessages",
    "CustomAction",
    "CustomActionCreate",
    "CustomActionPatch",
    "DailyActivity",
    "Document",
    "DocumentActivity",
    "DocumentAIContext",
    "DocumentCreate",
    "DocumentPatch",
    "DocumentSearchResult",
    "Highlight",
    "HighlightCreate",
    "HighlightPatch",
    "Interaction",
    "InteractionCreate",
    "InteractionSearchResult",
    "InteractionWithDocument",
    "MessageRole",
    "ResponseFormat",
    "ResponseLength",
    "ResponseTone",
    "ReviewCard",
    "ReviewCardCreate",
    "ReviewCardWithContext",
    "ReviewSchedule",
    "SearchResults",
]
