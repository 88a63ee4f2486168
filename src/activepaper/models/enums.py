from enum import StrEnum


class ActionType(StrEnum):
    EXPLAIN = "explain"
    SUMMARIZE = "summarize"
    DEFINE = "define"


class MessageRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class ResponseTone(StrEnum):
    STANDARD = "standard"
    FORMAL = "formal"
    CASUAL = "casual"
    TECHNICAL = "technical"
    ELI5 = "eli5"
    ACADEMIC = "academic"


class ResponseLength(StrEnum):
    CONCISE = "concise"
    STANDARD = "standard"
    DETAILED = "detailed"


class ResponseFormat(StrEnum):
    PROSE = "prose"
    BULLETS = "bullets"
    STEP_BY_STEP = "step_by_step"
    QA = "qa"
