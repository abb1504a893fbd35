from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.order import OrderItem
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate, Product as ProductSchema
from app.services import revalidation

router = APIRouter(prefix="/admin/products", tags=["Admin - Products"])


@router.get("/", response_model=List[ProductSchema])
def list_products(
    include_inactive: bool = Query(True),
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active == True)  # noqa: E712
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.category, Product.name).all()


@router.post("/", response_model=ProductSchema, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    product = Product(**data.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    revalidation.revalidate_paths(revalidation.ADMIN_PRODUCTS, revalidation.CHECKOUT)
    return product


@router.patch("/{product_id}", response_model=ProductSchema)
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Existing order items keep the price they were sold at."""
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    revalidation.revalidate_paths(revalidation.ADMIN_PRODUCTS, revalidation.CHECKOUT)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_200_OK)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Hard delete, or deactivate when order items still reference the product."""
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    referenced = db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
    if referenced:
        product.is_active = False
        result = {"id": product_id, "deleted": False, "deactivated": True}
    else:
        db.delete(product)
        result = {"id": product_id, "deleted": True, "deactivated": False}
    db.commit()
    revalidation.revalidate_paths(revalidation.ADMIN_PRODUCTS, revalidation.CHECKOUT)
    return result
