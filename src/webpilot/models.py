"""Shared models used across webpilot."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

Coordinate = tuple[float, float]


# ---------------------------------------------------------------------------
# Actions accepted by the ``computer`` tool
# ---------------------------------------------------------------------------


class ScreenshotAction(BaseModel):
    action: Literal["screenshot"]


class ClickAction(BaseModel):
    """Pointer click addressed either by viewport coordinate or by ref id."""

    action: Literal["left_click", "right_click", "double_click"]
    coordinate: Optional[Coordinate] = None
    ref: Optional[str] = None

    @model_validator(mode="after")
    def _one_target(self) -> "ClickAction":
        if (self.coordinate is None) == (self.ref is None):
            raise ValueError(f"{self.action} requires exactly one of 'coordinate' or 'ref'")
        return self

    @property
    def button(self) -> str:
        return "right" if self.action == "right_click" else "left"

    @property
    def click_count(self) -> int:
        return 2 if self.action == "double_click" else 1


class TypeAction(BaseModel):
    action: Literal["type"]
    text: str


class KeyAction(BaseModel):
    action: Literal["key"]
    text: str = Field(description="Key name or '+'-joined combination, e.g. 'ctrl+a'.")


class WaitAction(BaseModel):
    action: Literal["wait"]
    duration: float = Field(ge=0, description="Seconds to wait.")


class ScrollParameters(BaseModel):
    scroll_direction: Literal["up", "down", "left", "right"]
    scroll_amount: Union[Literal["max"], float] = 3


class ScrollAction(BaseModel):
    action: Literal["scroll"]
    coordinate: Coordinate
    scroll_parameters: ScrollParameters


class DragAction(BaseModel):
    action: Literal["left_click_drag"]
    start_coordinate: Coordinate
    end_coordinate: Coordinate


class ScrollToAction(BaseModel):
    action: Literal["scroll_to"]
    ref: str


Action = Annotated[
    Union[
        ScreenshotAction,
        ClickAction,
        TypeAction,
        KeyAction,
        WaitAction,
        ScrollAction,
        DragAction,
        ScrollToAction,
    ],
    Field(discriminator="action"),
]


# ---------------------------------------------------------------------------
# Tool inputs
# ---------------------------------------------------------------------------


class ComputerToolInput(BaseModel):
    tab_id: int
    action: Optional[Action] = None
    actions: Optional[list[Action]] = None

    @model_validator(mode="after")
    def _single_form(self) -> "ComputerToolInput":
        if self.action is not None and self.actions is not None:
            raise ValueError("Provide either 'action' or 'actions', not both")
        return self

    def expanded(self) -> list[Any]:
        """Return the actions of this call in execution order."""

        if self.actions is not None:
            return list(self.actions)
        if self.action is not None:
            return [self.action]
        return []


class ReadPageInput(BaseModel):
    tab_id: int
    depth: int = Field(default=15, ge=0)
    filter: Optional[Literal["interactive", "all"]] = None
    ref_id: Optional[str] = None


class FindInput(BaseModel):
    tab_id: int
    query: str = Field(min_length=1)


class GetPageTextInput(BaseModel):
    tab_id: int


class FormInputInput(BaseModel):
    tab_id: int
    ref: str
    value: Union[bool, int, float, str]


class NavigateInput(BaseModel):
    tab_id: int
    url: str = Field(min_length=1)


class TabsCreateInput(BaseModel):
    url: Optional[str] = None


class TabsContextInput(BaseModel):
    pass


# ---------------------------------------------------------------------------
# Tool outputs
# ---------------------------------------------------------------------------


class Tab(BaseModel):
    """Descriptor of a browser tab."""

    id: int = Field(ge=1)
    url: str
    title: str
    active: bool = False


@dataclass
class Screenshot:
    """Viewport capture returned by perception tools."""

    image: bytes
    width: int
    height: int
    timestamp: float
    media_type: str = "image/png"


class ElementBox(BaseModel):
    """Element center (``x``, ``y``) and size in viewport pixels."""

    x: float
    y: float
    width: float
    height: float


class FoundElement(BaseModel):
    ref_id: str
    tag: str
    text: Optional[str] = None
    role: Optional[str] = None
    coordinates: ElementBox


class FindResult(BaseModel):
    elements: list[FoundElement]
    total: int


class TabsContextResult(BaseModel):
    tabs: list[Tab]
    current_tab_id: int


# ---------------------------------------------------------------------------
# Model-service content
# ---------------------------------------------------------------------------


class ImageSource(BaseModel):
    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    source: ImageSource


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: Union[str, list[Annotated[Union[TextBlock, ImageBlock], Field(discriminator="type")]]]
    is_error: bool = False


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator="type"),
]


class Message(BaseModel):
    """One role-tagged entry of the conversation."""

    role: Literal["user", "assistant"]
    content: Union[str, list[ContentBlock]]


class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class StopReason(str, enum.Enum):
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"


class ModelResponse(BaseModel):
    """Structured response from the model service."""

    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: str = StopReason.END_TURN.value
    usage: Usage = Field(default_factory=Usage)

    def tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class NotificationLevel(str, enum.Enum):
    """Severity of notification events."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class NotificationEvent(BaseModel):
    """Event emitted to notify users."""

    type: str
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
