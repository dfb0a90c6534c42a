from __future__ import annotations

from fastapi import Depends, HTTPException, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack import models
from fintrack.core.database import get_db
from fintrack.core.deps import get_current_user
from fintrack.schemas import CategoryCreate


def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Category:
    category = models.Category(user_id=user.id, name=payload.name.strip(), type=payload.type, color=payload.color.upper())
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Category with same name and type already exists")
    db.refresh(category)
    return category


def list_categories(
    category_type: models.CategoryType | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[models.Category]:
    q = db.query(models.Category).filter(models.Category.user_id == user.id)
    if category_type is not None:
        q = q.filter(models.Category.type.in_([category_type, models.CategoryType.BOTH]))
    return q.order_by(models.Category.name).all()


def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    category = (
        db.query(models.Category)
        .filter(models.Category.id == category_id, models.Category.user_id == user.id)
        .first()
    )
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    # Transactions keep existing without a category
    db.query(models.Transaction).filter(models.Transaction.category_id == category.id).update(
        {models.Transaction.category_id: None}, synchronize_session=False
    )
    db.delete(category)
    db.commit()
    return Response(status_code=204)
