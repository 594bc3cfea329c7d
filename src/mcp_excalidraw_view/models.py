"""Data model shared by the streaming pipeline and the server boundary."""

from dataclasses import dataclass
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

# Reserved type tags for camera records
VIEWPORT_TYPES = ("cameraUpdate", "viewportUpdate")


@dataclass
class ViewportRect:
    """A view window in scene coordinates."""

    x: float
    y: float
    width: float
    height: float

    def copy(self) -> "ViewportRect":
        return ViewportRect(self.x, self.y, self.width, self.height)

    def distance_to(self, other: "ViewportRect") -> float:
        return (
            abs(other.x - self.x)
            + abs(other.y - self.y)
            + abs(other.width - self.width)
            + abs(other.height - self.height)
        )


DEFAULT_VIEWPORT = ViewportRect(0, 0, 1024, 768)

# A finite number given as a JSON number, the only kind the renderer can place
Coordinate = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class Label(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str = ""
    fontSize: Optional[float] = None
    textAlign: Optional[str] = None
    verticalAlign: Optional[str] = None


class DrawElement(BaseModel):
    """Validated view of one drawable record.

    The pipeline itself works on plain dicts; this model is used where a
    record has to be checked against the wire contract (tool input).
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    x: Coordinate
    y: Coordinate
    width: Coordinate = 0
    height: Coordinate = 0
    points: Optional[list[list[Coordinate]]] = None
    label: Optional[Label] = None
    text: Optional[str] = None
    strokeColor: Optional[str] = None
    backgroundColor: Optional[str] = None
    opacity: Optional[Coordinate] = None
    seed: Optional[StrictInt] = None


class ViewportRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    x: Coordinate
    y: Coordinate
    width: Coordinate
    height: Coordinate


class DrawingPost(BaseModel):
    """Body of ``POST /api/drawing``."""

    screenshot: str
    elements: str
    prompt: str = ""


class StoredDrawing(BaseModel):
    screenshot: str
    elements: str
    prompt: str = ""
    timestamp: float = Field(description="Epoch seconds when the drawing was posted")
