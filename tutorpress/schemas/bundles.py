from pydantic import BaseModel, Field
from typing import Any, List, Optional


class BundleSummary(BaseModel):
    id: int
    title: str
    slug: str


class BundleListResponse(BaseModel):
    bundles: List[BundleSummary]
    total: int
    total_pages: int


class BundleResponse(BaseModel):
    id: int
    title: str
    content: str
    slug: str
    status: str
    created: Optional[str] = None
    modified: Optional[str] = None


class BundleUpdate(BaseModel):
    """Partial update; omitted fields are left untouched"""
    title: Optional[str] = None
    content: Optional[str] = None


class Instructor(BaseModel):
    id: int
    display_name: str
    user_email: str
    user_login: str
    avatar_url: str
    role: str
    designation: str = ""


class BundleCourse(BaseModel):
    id: int
    title: str
    permalink: str
    featured_image: Optional[str] = None
    author: str
    date_created: str
    price: str
    duration: Any = ""  # Tutor stores either a string or {hours, minutes, seconds}
    lesson_count: int = 0
    quiz_count: int = 0
    resource_count: int = 0
    instructors: List[Instructor] = []


class BundleCoursesResponse(BaseModel):
    success: bool = True
    data: List[BundleCourse]
    total_found: int


class BundleCoursesUpdate(BaseModel):
    # Left untyped so a non-array answers invalid_course_ids rather than a schema error
    course_ids: Any = Field(None, description="Array of course IDs to assign to the bundle.")


class BenefitsData(BaseModel):
    benefits: str
    bundle_id: int


class BenefitsResponse(BaseModel):
    success: bool = True
    data: BenefitsData


class BenefitsSave(BaseModel):
    bundle_id: int = Field(..., description="The bundle ID.")
    benefits: Optional[str] = Field("", description="What students will learn from this bundle")


class BenefitsSaveData(BaseModel):
    bundle_id: int
    benefits_saved: bool


class BenefitsSaveResponse(BaseModel):
    success: bool = True
    message: str
    data: BenefitsSaveData


class BundleInstructorsResponse(BaseModel):
    success: bool = True
    data: List[Instructor]
    total_instructors: int
    total_courses: int


class BundleSettings(BaseModel):
    price_type: str = ""
    price: float = 0.0
    sale_price: float = 0.0
    selling_option: str = ""
    product_id: int = 0
    ribbon_type: str = ""
    course_ids: List[int] = []
    benefits: str = ""
