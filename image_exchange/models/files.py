from pydantic import BaseModel


class StoredFile(BaseModel):
    name: str
    size: int


class UploadResponse(BaseModel):
    message: str
    filename: str
