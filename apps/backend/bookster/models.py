from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # JSON in/out in camelCase, Python attributes in snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----- Books & chapters -----

class Chapter(_CamelModel):
    id: str = Field(..., description="Opaque chapter id", examples=["1"])
    title: str = Field("", description="Chapter title", examples=["Getting Started"])
    content: str = Field("", description="Chapter text, paragraphs separated by blank lines")
    is_expanded: bool = Field(True, description="UI hint: chapter open in the editor")


class CustomTheme(_CamelModel):
    background_color: str = "#ffffff"
    text_color: str = "#1f2937"
    font_size: str = "16px"
    font_family: str = "serif"
    line_height: str = "1.6"
    margin_bottom: str = "1.5rem"
    accent_color: str = "#3b82f6"


class BookData(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = Field("", description="Book title", examples=["The Remote Work Playbook"])
    subtitle: Optional[str] = None
    author: str = ""
    description: str = ""
    chapters: List[Chapter] = Field(default_factory=list)
    selected_template: str = Field("original", description="original | modern | creative | classic | business | academic")
    custom_theme: Optional[CustomTheme] = None
    cover_image_url: Optional[str] = None
    language: str = "English (EN)"


class ExportOptions(_CamelModel):
    include_cover: bool
    include_table_of_contents: bool
    include_page_numbers: bool


class ExportOptionsIn(_CamelModel):
    include_cover: bool = True
    include_table_of_contents: bool = True
    include_page_numbers: bool = True

    def resolve(self) -> ExportOptions:
        return ExportOptions(**self.model_dump())


class ExportRequest(BookData):
    options: ExportOptionsIn = Field(default_factory=ExportOptionsIn)

    def book(self) -> BookData:
        return BookData(**self.model_dump(exclude={"options"}))


class ExportOut(_CamelModel):
    success: bool = True
    download_url: str
    file_name: str
    download_name: str
    format: str
    fallback: bool = False
    message: str


# ----- Chapter generation -----

class BookDetails(_CamelModel):
    title: str = ""
    subtitle: Optional[str] = None
    description: str = ""
    target_audience: str = ""
    tone_style: str = ""
    mission: str = ""
    author: str = ""
    number_of_chapters: Optional[int] = Field(None, ge=1, le=50)
    book_id: Optional[str] = None


class RegenerateIn(_CamelModel):
    chapter_title: str = ""
    book_details: Optional[BookDetails] = None


class ChaptersOut(_CamelModel):
    chapters: List[Chapter]


class ContentOut(_CamelModel):
    content: str


# ----- Admin -----

class AdminConfigIn(_CamelModel):
    config_key: str = Field(..., min_length=1, examples=["prompt_book_outline"])
    config_value: Dict[str, Any] = Field(..., examples=[{"prompt": "Write {numberOfChapters} chapters about {title}"}])


class UserCreateIn(BaseModel):
    username: str = Field(..., min_length=3)
    email: str = Field(..., min_length=3)
    role: str = "user"
    plan: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0)
    api_key: Optional[str] = None


class UserUpdateIn(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    plan: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0)
    status: Optional[str] = None
