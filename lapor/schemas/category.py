from pydantic import BaseModel, field_validator


class CategoryIn(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nama kategori wajib diisi")
        if len(v) > 100:
            raise ValueError("Nama kategori maksimal 100 karakter")
        return v


class CategoryOut(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True
