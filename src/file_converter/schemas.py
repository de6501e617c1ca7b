from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str
    version: str


class TargetOption(BaseModel):
    mime_type: str
    label: str


class TargetList(BaseModel):
    filename: str
    category: str | None
    targets: list[TargetOption]


class ErrorDetail(BaseModel):
    code: str
    message: str
