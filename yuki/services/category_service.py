from sqlalchemy.orm import Session
from typing import Dict, List

from yuki.core.exceptions import NotFoundError, ReferentialError, ValidationError
from yuki.core.seed_data import DEFAULT_CATEGORY_COLOR, FALLBACK_CATEGORY_ID
from yuki.models.category import Category
from yuki.models.ledger_entry import LedgerEntry
from yuki.schemas.category import CategoryCreate, CategoryUpdate
from yuki.services.ledger_service import write_transaction
from yuki.services.normalization import slugify


class CategoryService:

    @staticmethod
    def get_categories(db: Session, include_hidden: bool = False) -> List[Category]:
        query = db.query(Category)
        if not include_hidden:
            query = query.filter(Category.is_hidden.is_(False))
        return query.order_by(Category.is_default.desc(), Category.name).all()

    @staticmethod
    def list_category_names(db: Session) -> List[str]:
        """Names offered to the model. Hidden defaults stay matchable so old data keeps its category."""
        return [name for (name,) in db.query(Category.name).order_by(Category.name).all()]

    @staticmethod
    def category_ids(db: Session) -> Dict[str, str]:
        """Display name -> stored id. Renamed categories keep their original id."""
        rows = db.query(Category.name, Category.id).order_by(Category.name).all()
        return {name: category_id for (name, category_id) in rows}

    @staticmethod
    def get_category(db: Session, category_id: str) -> Category:
        category = db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    @staticmethod
    def _assert_name_available(db: Session, name: str, exclude_id: str = None) -> None:
        slug = slugify(name)
        for existing in db.query(Category).all():
            if existing.id == exclude_id:
                continue
            if existing.name.lower() == name.strip().lower() or existing.id == slug:
                raise ValidationError(f"Category '{name}' already exists")

    @staticmethod
    def create_category(db: Session, category_data: CategoryCreate) -> Category:
        name = category_data.name.strip()
        CategoryService._assert_name_available(db, name)

        category = Category(
            id=slugify(name),
            name=name,
            icon=category_data.icon,
            color=category_data.color or DEFAULT_CATEGORY_COLOR,
            is_default=False,
            is_hidden=False,
        )
        with write_transaction(db):
            db.add(category)
        db.refresh(category)
        return category

    @staticmethod
    def update_category(db: Session, category_id: str, category_data: CategoryUpdate) -> Category:
        """Update display fields. The id stays fixed so existing entries keep pointing at it."""
        category = CategoryService.get_category(db, category_id)
        update_data = category_data.model_dump(exclude_unset=True)

        if "name" in update_data and update_data["name"] is not None:
            new_name = update_data["name"].strip()
            if category.is_default and slugify(new_name) != category.id:
                raise ReferentialError("Default categories cannot be renamed")
            CategoryService._assert_name_available(db, new_name, exclude_id=category.id)
            update_data["name"] = new_name

        with write_transaction(db):
            for field, value in update_data.items():
                setattr(category, field, value)
        db.refresh(category)
        return category

    @staticmethod
    def set_hidden(db: Session, category_id: str, hidden: bool) -> Category:
        category = CategoryService.get_category(db, category_id)
        if category.id == FALLBACK_CATEGORY_ID and hidden:
            raise ReferentialError("The 'Other' category cannot be hidden")
        with write_transaction(db):
            category.is_hidden = hidden
        db.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, category_id: str) -> int:
        """Delete a user category; its entries move to "other". Returns the number moved."""
        category = CategoryService.get_category(db, category_id)
        if category.is_default:
            raise ReferentialError("Default categories cannot be deleted, hide them instead")

        with write_transaction(db):
            moved = db.query(LedgerEntry).filter(
                LedgerEntry.category_id == category_id
            ).update({LedgerEntry.category_id: FALLBACK_CATEGORY_ID}, synchronize_session=False)
            db.delete(category)
        db.expire_all()
        return moved

    @staticmethod
    def merge_categories(db: Session, source_id: str, target_id: str) -> Category:
        """Move every entry from source to target, then delete source."""
        if source_id == target_id:
            raise ValidationError("Cannot merge a category into itself")
        source = CategoryService.get_category(db, source_id)
        target = CategoryService.get_category(db, target_id)
        if source.is_default:
            raise ReferentialError("Default categories cannot be merged away, hide them instead")

        with write_transaction(db):
            db.query(LedgerEntry).filter(
                LedgerEntry.category_id == source_id
            ).update({LedgerEntry.category_id: target_id}, synchronize_session=False)
            db.delete(source)
        db.expire_all()
        return target
