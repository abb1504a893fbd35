from typing import Optional
from pydantic import BaseModel, Field


class ProductBase(BaseModel):
    name: str
    description: Optional[str] = None
    price: int = Field(ge=0)
    category: str
    image_url: Optional[str] = None


class ProductCreate(ProductBase):
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class Product(ProductBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True


class ProductSummary(BaseModel):
    id: int
    name: str
    price: int
    category: str

    class Config:
        from_attributes = True
