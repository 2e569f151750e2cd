"""
Product and review routes, mounted under ``/product``.

Static paths are declared before ``/{product_id}`` so they are not captured
by it.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from ..context import AppContext
from ..errors import ValidationError
from ..models.product import NewProductForm, ProductListQuery, ProductUpdateForm
from ..models.review import ReviewRequest
from ..services.products import validate_photos
from .deps import acting_user_id, get_context, read_uploads, require_admin

router = APIRouter(prefix="/product", tags=["product"])


@router.get("/latest")
async def latest_products(context: AppContext = Depends(get_context)):
    return {"success": True, "products": await context.products.latest_products()}


@router.get("/categories")
async def categories(context: AppContext = Depends(get_context)):
    return {"success": True, "categories": await context.products.categories()}


@router.get("/admin-products", dependencies=[Depends(require_admin)])
async def admin_products(context: AppContext = Depends(get_context)):
    return {"success": True, "products": await context.products.all_products()}


@router.get("/all")
async def search_products(
    search: Optional[str] = None,
    sort: Optional[str] = None,
    category: Optional[str] = None,
    price: Optional[str] = None,
    page: Optional[str] = None,
    context: AppContext = Depends(get_context),
):
    """Blank parameters mean "no filter"; ``price`` is a maximum."""
    query = ProductListQuery(
        search=search, sort=sort, category=category, price=price, page=page or 1
    )
    return {"success": True, **await context.products.list_products(query)}


@router.post("/new", status_code=201, dependencies=[Depends(require_admin)])
async def new_product(
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    photos: Optional[List[UploadFile]] = File(None),
    context: AppContext = Depends(get_context),
):
    uploads = await read_uploads(photos)
    validate_photos(uploads, required=True)
    if not all(value and value.strip() for value in (name, price, stock, category, description)):
        raise ValidationError("Please enter All Fields")

    form = NewProductForm(
        name=name, price=price, stock=stock, category=category, description=description
    )
    product_id = await context.products.create_product(form, uploads)
    return {"success": True, "message": "Product Created Successfully", "productId": product_id}


@router.get("/reviews/{product_id}")
async def product_reviews(product_id: str, context: AppContext = Depends(get_context)):
    return {"success": True, "reviews": await context.reviews.product_reviews(product_id)}


@router.api_route("/review/new/{product_id}", methods=["POST", "PUT"])
async def upsert_review(
    product_id: str,
    review: ReviewRequest,
    user_id: Optional[str] = Depends(acting_user_id),
    context: AppContext = Depends(get_context),
):
    created = await context.reviews.upsert_review(product_id, user_id, review)
    return JSONResponse(
        status_code=201 if created else 200,
        content={"success": True, "message": "Review Added" if created else "Review Updated"},
    )


@router.delete("/review/{product_id}/{review_id}")
async def delete_review(
    product_id: str,
    review_id: str,
    user_id: Optional[str] = Depends(acting_user_id),
    context: AppContext = Depends(get_context),
):
    await context.reviews.delete_review(product_id, review_id, user_id)
    return {"success": True, "message": "Review Deleted"}


@router.get("/{product_id}")
async def get_product(product_id: str, context: AppContext = Depends(get_context)):
    return {"success": True, "product": await context.products.get_product(product_id)}


@router.put("/{product_id}", dependencies=[Depends(require_admin)])
async def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    photos: Optional[List[UploadFile]] = File(None),
    context: AppContext = Depends(get_context),
):
    form = ProductUpdateForm(
        name=name, price=price, stock=stock, category=category, description=description
    )
    await context.products.update_product(product_id, form, await read_uploads(photos))
    return {"success": True, "message": "Product Updated Successfully"}


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
async def delete_product(product_id: str, context: AppContext = Depends(get_context)):
    await context.products.delete_product(product_id)
    return {"success": True, "message": "Product Deleted Successfully"}
