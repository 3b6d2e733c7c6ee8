from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List

from yuki.core.deps import get_db
from yuki.core.exceptions import NotFoundError, ReferentialError, ValidationError
from yuki.schemas.category import CategoryCreate, CategoryMerge, CategoryResponse, CategoryUpdate
from yuki.services.category_service import CategoryService

router = APIRouter()


@router.get("/", response_model=List[CategoryResponse])
def get_categories(
    include_hidden: bool = Query(False, description="Include hidden default categories"),
    db: Session = Depends(get_db),
):
    return CategoryService.get_categories(db, include_hidden=include_hidden)


@router.get("/names", response_model=List[str])
def get_category_names(db: Session = Depends(get_db)):
    """Category names as offered to the language model"""
    return CategoryService.list_category_names(db)


@router.post("/", response_model=CategoryResponse)
def create_category(category_data: CategoryCreate, db: Session = Depends(get_db)):
    try:
        return CategoryService.create_category(db, category_data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(category_id: str, category_data: CategoryUpdate, db: Session = Depends(get_db)):
    try:
        return CategoryService.update_category(db, category_id, category_data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{category_id}/hide", response_model=CategoryResponse)
def hide_category(category_id: str, db: Session = Depends(get_db)):
    try:
        return CategoryService.set_hidden(db, category_id, True)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{category_id}/unhide", response_model=CategoryResponse)
def unhide_category(category_id: str, db: Session = Depends(get_db)):
    try:
        return CategoryService.set_hidden(db, category_id, False)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{category_id}/merge", response_model=CategoryResponse)
def merge_category(category_id: str, merge: CategoryMerge, db: Session = Depends(get_db)):
    """Move every entry of this category into the target, then remove it"""
    try:
        return CategoryService.merge_categories(db, category_id, merge.target_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db)):
    try:
        moved = CategoryService.delete_category(db, category_id)
        return {"message": "Category deleted successfully", "entries_reassigned": moved}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReferentialError as e:
        raise HTTPException(status_code=409, detail=str(e))
