"""
Declarative page layout.

Generators describe each page as a list of draw commands in millimetres
with the origin at the top-left corner. Text y is the baseline. A backend
(see pdf_renderer) turns a Document into bytes, so pagination and column
math can be checked without touching a PDF library.
"""
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from PIL import Image

Color = Tuple[int, int, int]

BLACK: Color = (0, 0, 0)
WHITE: Color = (255, 255, 255)
HEADER_FILL: Color = (220, 220, 220)
ROW_SHADE: Color = (242, 242, 242)

A4_PORTRAIT_MM = (210.0, 297.0)
LABEL_LANDSCAPE_MM = (150.0, 101.3)


@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[Color] = None
    stroke: bool = True
    line_width: float = 0.3


@dataclass
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    line_width: float = 0.3


@dataclass
class Text:
    x: float
    y: float
    text: str
    font_size: float = 10
    bold: bool = False
    align: str = "left"  # left | center | right
    color: Color = BLACK


@dataclass
class ImageBox:
    x: float
    y: float
    width: float
    height: float
    image: Image.Image
    alt_text: str = ""


Command = Union[Rect, Line, Text, ImageBox]


@dataclass
class Page:
    commands: List[Command] = field(default_factory=list)

    def rect(self, x, y, width, height, fill=None, stroke=True, line_width=0.3) -> Rect:
        cmd = Rect(x, y, width, height, fill=fill, stroke=stroke, line_width=line_width)
        self.commands.append(cmd)
        return cmd

    def line(self, x1, y1, x2, y2, line_width=0.3) -> Line:
        cmd = Line(x1, y1, x2, y2, line_width=line_width)
        self.commands.append(cmd)
        return cmd

    def text(self, x, y, text, font_size=10, bold=False, align="left", color=BLACK) -> Text:
        cmd = Text(x, y, "" if text is None else str(text), font_size=font_size, bold=bold, align=align, color=color)
        self.commands.append(cmd)
        return cmd

    def image(self, x, y, width, height, image, alt_text="") -> ImageBox:
        cmd = ImageBox(x, y, width, height, image=image, alt_text=alt_text)
        self.commands.append(cmd)
        return cmd

    def texts(self) -> List[str]:
        return [cmd.text for cmd in self.commands if isinstance(cmd, Text)]


@dataclass
class Document:
    """Fixed-geometry document: every page shares width and height."""
    width: float
    height: float
    title: str = ""
    pages: List[Page] = field(default_factory=list)

    def add_page(self) -> Page:
        page = Page()
        self.pages.append(page)
        return page

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def texts(self) -> List[str]:
        return [text for page in self.pages for text in page.texts()]

    def images(self) -> Iterator[ImageBox]:
        for page in self.pages:
            for cmd in page.commands:
                if isinstance(cmd, ImageBox):
                    yield cmd

    def extend(self, other: "Document") -> None:
        if (other.width, other.height) != (self.width, self.height):
            raise ValueError("Cannot merge documents with different page sizes")
        self.pages.extend(other.pages)


def fit_image(image: Image.Image, max_width: float, max_height: float) -> Tuple[float, float]:
    """Largest (width, height) in mm that keeps the image aspect ratio inside the box."""
    img_w, img_h = image.size
    if img_w <= 0 or img_h <= 0:
        return max_width, max_height
    scale = min(max_width / img_w, max_height / img_h)
    return img_w * scale, img_h * scale
