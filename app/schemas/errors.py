from pydantic import BaseModel


class NotFoundOut(BaseModel):
    detail: str

class UnauthorizedOut(BaseModel):
    detail: str

class FieldErrorOut(BaseModel):
    field: str
    message: str

class ValidationErrorOut(BaseModel):
    detail: str
    errors: list[FieldErrorOut]

class ServerErrorOut(BaseModel):
    detail: str
