from pydantic import BaseModel, Field


class CertificateTemplate(BaseModel):
    key: str
    slug: str
    name: str
    orientation: str = "landscape"
    is_default: bool = False
    path: str = ""
    url: str = ""
    preview_src: str = ""
    background_src: str = ""


class CertificateSelectionSave(BaseModel):
    course_id: int = Field(..., description="The ID of the course to save certificate template for.")
    template_key: str = Field(..., description="The template key to assign to the course.")


class CertificateSelection(BaseModel):
    course_id: int
    template_key: str
    meta_key: str
