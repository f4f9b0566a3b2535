"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输

Wire shapes use camelCase keys (``authorId``, ``isClosed``, ``myVote``);
Python attributes stay snake_case.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)

    def payload(self) -> dict:
        """JSON-ready dict with wire (camelCase) keys, used for socket frames."""
        return self.model_dump(mode="json", by_alias=True)


# -------------------- read models --------------------

class MemberDTO(DTOBase):
    """成员展示字段"""
    id: str
    name: str
    role: str

    @classmethod
    def from_identity(cls, identity) -> "MemberDTO":
        return cls(id=identity.id, name=identity.name, role=identity.role.value)


class AnnouncementDTO(DTOBase):
    """公告响应DTO"""
    id: int
    text: str
    author_id: str
    author: Optional[MemberDTO] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, announcement) -> "AnnouncementDTO":
        return cls(
            id=announcement.id,
            text=announcement.text,
            author_id=announcement.author_id,
            author=MemberDTO.from_identity(announcement.author) if announcement.author else None,
            created_at=announcement.created_at,
        )


class AnswerDTO(DTOBase):
    id: int
    question_id: int
    text: str
    answerer_id: str
    answerer: Optional[MemberDTO] = None
    created_at: datetime


class QuestionDTO(DTOBase):
    """问题响应DTO（包含按创建顺序排列的回答）"""
    id: int
    text: str
    asker_id: str
    asker: Optional[MemberDTO] = None
    created_at: datetime
    answers: list[AnswerDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, question) -> "QuestionDTO":
        return cls(
            id=question.id,
            text=question.text,
            asker_id=question.asker_id,
            asker=MemberDTO.from_identity(question.asker) if question.asker else None,
            created_at=question.created_at,
            answers=[
                AnswerDTO(
                    id=a.id,
                    question_id=a.question_id,
                    text=a.text,
                    answerer_id=a.answerer_id,
                    answerer=MemberDTO.from_identity(a.answerer) if a.answerer else None,
                    created_at=a.created_at,
                )
                for a in question.answers
            ],
        )


class AnswerCreatedDTO(DTOBase):
    """``answerCreated`` 广播负载：携带完整的问题记录"""
    question_id: int
    question: QuestionDTO


class PollSummaryDTO(DTOBase):
    """Broadcastable poll shape (``newPoll``)."""
    id: int
    question: str
    options: list[str]
    counts: list[int]
    is_closed: bool

    @classmethod
    def from_entity(cls, poll) -> "PollSummaryDTO":
        return cls(
            id=poll.id,
            question=poll.question,
            options=list(poll.options),
            counts=list(poll.counts),
            is_closed=poll.is_closed,
        )


class PollViewDTO(PollSummaryDTO):
    """Per-caller projection; never broadcast."""
    my_vote: Optional[int] = None


class PollCountsDTO(DTOBase):
    """``pollUpdate`` 广播负载"""
    id: int
    counts: list[int]


class VoteResultDTO(DTOBase):
    poll: PollSummaryDTO
    my_vote: int


class ReminderDTO(DTOBase):
    """``reminderReceived`` 负载（不持久化）"""
    role: str
    message: str
    sender: MemberDTO = Field(..., alias="from")
    sent_at: datetime


# -------------------- write models --------------------

class TextCreateDTO(DTOBase):
    """公告/问题/回答的创建请求"""
    text: str = Field(..., max_length=4000, description="正文，去除首尾空白后不能为空")


class PollCreateDTO(DTOBase):
    question: str = Field(..., max_length=1000)
    options: list[str] = Field(..., description="至少两个非空选项")


class VoteCreateDTO(DTOBase):
    # shape is checked by the domain so bools and numeric strings get a uniform error
    option_index: Any = Field(..., description="选项下标（整数）")


class ReminderCreateDTO(DTOBase):
    role: str = Field(..., min_length=1, max_length=32, description="目标角色频道")
    message: str = Field(..., max_length=2000)
