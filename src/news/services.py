"""Business rules for categories, tags and news articles.

Views call these services with plain values (ids, strings, the caller's id)
and get model instances back; every rule violation is raised as a
``core.exceptions.ServiceError`` subclass and rendered by the exception handler.
"""

import logging
from typing import Iterable

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from accounts.models import Account
from core.exceptions import (
    Conflict,
    Forbidden,
    HasDependents,
    NotFound,
    ValidationFailed,
)
from core.pagination import PagedResult, paginate

from . import tree
from .models import Category, NewsArticle, NewsTag, Tag

logger = logging.getLogger(__name__)

MAX_TAGS_PER_ARTICLE = 10


class DuplicateName(Conflict):
    default_detail = "Category already exists"
    default_code = "duplicate_name"


class ParentNotFound(ValidationFailed):
    default_detail = "Parent category not found"
    default_code = "parent_not_found"


class CircularReference(Conflict):
    default_detail = "Invalid parent category. Cannot create circular reference."
    default_code = "circular_reference"


class CategoryNotFound(ValidationFailed):
    default_detail = "Category not found"
    default_code = "category_not_found"


class InactiveCategory(ValidationFailed):
    default_detail = "Cannot create news in inactive category"
    default_code = "inactive_category"


class TooManyTags(ValidationFailed):
    default_detail = f"Maximum {MAX_TAGS_PER_ARTICLE} tags allowed"
    default_code = "too_many_tags"


class AuthorNotFound(ValidationFailed):
    default_detail = "Author account not found"
    default_code = "author_not_found"


def _clean(value: str | None) -> str | None:
    """Trim optional text, storing blanks as NULL."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class CategoryService:
    """Category CRUD plus hierarchy integrity (uniqueness, cycles, dependents)."""

    @staticmethod
    def _annotated():
        return Category.objects.select_related("parent").annotate(
            news_article_count=Count("articles", distinct=True),
            sub_category_count=Count("sub_categories", distinct=True),
        )

    @classmethod
    def list_all(cls) -> list[Category]:
        return list(cls._annotated().order_by("name"))

    @staticmethod
    def list_active() -> list[Category]:
        return list(Category.objects.filter(is_active=True).order_by("name"))

    @classmethod
    def get_by_id(cls, category_id: int) -> Category:
        """Return the annotated category with ``direct_sub_categories`` attached."""
        category = cls._annotated().filter(pk=category_id).first()
        if category is None:
            raise NotFound(f"Category with ID {category_id} not found")
        category.direct_sub_categories = cls.get_sub_categories(category_id)
        return category

    @classmethod
    def search(cls, term: str | None) -> list[Category]:
        return list(cls._search_queryset(term))

    @classmethod
    def search_paged(
        cls,
        search_term: str | None = None,
        is_active: bool | None = None,
        parent_id: int | None = None,
        page_number: int = 1,
        page_size: int = 10,
    ) -> PagedResult:
        queryset = cls._search_queryset(search_term)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if parent_id is not None:
            queryset = queryset.filter(parent_id=parent_id)
        return paginate(queryset, page_number, page_size)

    @classmethod
    def create(
        cls,
        name: str,
        description: str | None = None,
        parent_id: int | None = None,
        is_active: bool = True,
    ) -> Category:
        name = name.strip()
        cls._ensure_name_available(name)
        if parent_id is not None and not Category.objects.filter(pk=parent_id).exists():
            raise ParentNotFound(errors=["Invalid parent category ID"])

        try:
            with transaction.atomic():
                category = Category.objects.create(
                    name=name,
                    description=_clean(description),
                    parent_id=parent_id,
                    is_active=is_active,
                )
        except IntegrityError as exc:
            raise _duplicate_name(name) from exc

        logger.info("Created category %s (%s)", category.pk, name)
        return cls.get_by_id(category.pk)

    @classmethod
    def update(
        cls,
        category_id: int,
        name: str,
        description: str | None = None,
        parent_id: int | None = None,
        is_active: bool = True,
    ) -> Category:
        category = cls._get(category_id)
        name = name.strip()
        cls._ensure_name_available(name, exclude_id=category.pk)

        if parent_id is not None:
            if not Category.objects.filter(pk=parent_id).exists():
                raise ParentNotFound(errors=["Invalid parent category ID"])
            if not cls.is_valid_parent(category.pk, parent_id):
                logger.warning(
                    "Rejected parent %s for category %s: circular reference", parent_id, category.pk
                )
                raise CircularReference(errors=["Circular reference detected"])

        category.name = name
        category.description = _clean(description)
        category.parent_id = parent_id
        category.is_active = is_active
        try:
            with transaction.atomic():
                category.save()
        except IntegrityError as exc:
            raise _duplicate_name(name) from exc

        logger.info("Updated category %s", category.pk)
        return cls.get_by_id(category.pk)

    @classmethod
    def delete(cls, category_id: int) -> None:
        category = cls._annotated().filter(pk=category_id).first()
        if category is None:
            raise NotFound(f"Category with ID {category_id} not found")
        if category.news_article_count > 0:
            raise HasDependents(
                "Cannot delete category. It has associated news articles.",
                ["Please remove or reassign all news articles before deleting this category."],
            )
        if category.sub_category_count > 0:
            raise HasDependents(
                "Cannot delete category. It has sub-categories.",
                ["Please delete or reassign all sub-categories first."],
            )
        category.delete()
        logger.info("Deleted category %s", category_id)

    @classmethod
    def toggle_status(cls, category_id: int) -> Category:
        category = cls._get(category_id)
        return cls._store_status(category, not category.is_active)

    @classmethod
    def set_status(cls, category_id: int, is_active: bool) -> Category:
        category = cls._get(category_id)
        return cls._store_status(category, is_active)

    @staticmethod
    def get_tree() -> list[tree.TreeNode]:
        categories = Category.objects.order_by("name").only("id", "name", "is_active", "parent_id")
        counts = dict(
            NewsArticle.objects.values("category_id")
            .annotate(total=Count("id"))
            .values_list("category_id", "total")
        )
        return tree.build_tree(categories, counts)

    @classmethod
    def get_sub_categories(cls, parent_id: int) -> list[Category]:
        return list(cls._annotated().filter(parent_id=parent_id).order_by("name"))

    @classmethod
    def get_root_categories(cls) -> list[Category]:
        return list(cls._annotated().filter(parent__isnull=True).order_by("name"))

    @staticmethod
    def is_valid_parent(category_id: int, parent_id: int | None) -> bool:
        parent_of = dict(Category.objects.values_list("id", "parent_id"))
        return tree.is_valid_parent(category_id, parent_id, parent_of)

    @classmethod
    def delete_report(cls, category_id: int) -> dict:
        """Summarize whether a category can be deleted, and why not."""
        category = cls.get_by_id(category_id)
        if category.can_delete:
            reason = "Category can be deleted"
        else:
            parts = []
            if category.news_article_count > 0:
                parts.append(f"Has {category.news_article_count} news articles.")
            if category.sub_category_count > 0:
                parts.append(f"Has {category.sub_category_count} sub-categories.")
            reason = "Cannot delete: " + " ".join(parts)
        return {
            "id": category.pk,
            "name": category.name,
            "can_delete": category.can_delete,
            "news_article_count": category.news_article_count,
            "sub_category_count": category.sub_category_count,
            "reason": reason,
        }

    @classmethod
    def _search_queryset(cls, term: str | None):
        queryset = cls._annotated().order_by("name")
        term = (term or "").strip()
        if term:
            queryset = queryset.filter(Q(name__icontains=term) | Q(description__icontains=term))
        return queryset

    @staticmethod
    def _get(category_id: int) -> Category:
        category = Category.objects.filter(pk=category_id).first()
        if category is None:
            raise NotFound(f"Category with ID {category_id} not found")
        return category

    @staticmethod
    def _ensure_name_available(name: str, exclude_id: int | None = None) -> None:
        queryset = Category.objects.filter(name__iexact=name)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        if queryset.exists():
            raise _duplicate_name(name)

    @classmethod
    def _store_status(cls, category: Category, is_active: bool) -> Category:
        category.is_active = is_active
        category.save(update_fields=["is_active"])
        logger.info("Category %s is now %s", category.pk, "active" if is_active else "inactive")
        return cls.get_by_id(category.pk)


def _duplicate_name(name: str) -> DuplicateName:
    return DuplicateName(f"Category '{name}' already exists", ["Duplicate category name"])


class TagService:
    """Lazy tag creation and article/tag association maintenance."""

    @staticmethod
    def get_or_create(name: str) -> Tag:
        """Return the tag matching ``name`` case-insensitively, creating it if absent.

        A concurrent insert of the same name trips the ``LOWER(name)`` unique
        index; the savepoint is rolled back and the winner's row is returned.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("Tag name is required")

        tag = Tag.objects.filter(name__iexact=name).first()
        if tag is not None:
            return tag

        try:
            with transaction.atomic():
                tag = Tag.objects.create(name=name)
        except IntegrityError:
            tag = Tag.objects.filter(name__iexact=name).first()
            if tag is None:
                raise
            return tag

        logger.info("Created tag %s (%s)", tag.pk, name)
        return tag

    @classmethod
    def resolve_all(cls, names: Iterable[str]) -> list[int]:
        """Resolve names to tag ids, de-duplicated in first-seen order."""
        tag_ids: list[int] = []
        for name in names:
            if not name or not name.strip():
                continue
            tag_id = cls.get_or_create(name).pk
            if tag_id not in tag_ids:
                tag_ids.append(tag_id)
        return tag_ids

    @staticmethod
    def sync_for_article(article_id: int, tag_ids: Iterable[int]) -> None:
        """Replace the article's tag set with ``tag_ids``."""
        unique_ids = list(dict.fromkeys(tag_ids))
        with transaction.atomic():
            NewsTag.objects.filter(article_id=article_id).delete()
            NewsTag.objects.bulk_create(
                [NewsTag(article_id=article_id, tag_id=tag_id) for tag_id in unique_ids]
            )

    @staticmethod
    def list_for_article(article_id: int) -> list[Tag]:
        return list(Tag.objects.filter(news_tags__article_id=article_id).order_by("name"))

    @staticmethod
    def list_all() -> list[Tag]:
        return list(Tag.objects.order_by("name"))

    @staticmethod
    def search_by_name(term: str | None) -> list[Tag]:
        term = (term or "").strip()
        if not term:
            return []
        return list(Tag.objects.filter(name__icontains=term).order_by("name"))


class NewsArticleService:
    """Article lifecycle: visibility, ownership-gated mutation and tag sync."""

    @staticmethod
    def _base():
        return NewsArticle.objects.select_related(
            "category", "created_by", "updated_by"
        ).prefetch_related("tags")

    @classmethod
    def list_active_public(cls) -> list[NewsArticle]:
        return list(cls._base().filter(status=True, category__is_active=True))

    @classmethod
    def get_by_id(cls, article_id: int, caller_id: int | None = None) -> NewsArticle:
        """Fetch an article, hiding inactive ones from everyone but their owner.

        Anonymous callers (``caller_id is None``) may still read inactive
        articles unless ``NEWS_HIDE_INACTIVE_FROM_ANONYMOUS`` is set.
        """
        article = cls._base().filter(pk=article_id).first()
        if article is None:
            raise NotFound(f"News article with ID {article_id} not found")

        if not article.status:
            if caller_id is None:
                if getattr(settings, "NEWS_HIDE_INACTIVE_FROM_ANONYMOUS", False):
                    raise Forbidden("You don't have permission to view this news article")
                logger.warning("Anonymous read of inactive article %s", article_id)
            elif caller_id != article.created_by_id:
                logger.warning(
                    "Account %s denied read of inactive article %s", caller_id, article_id
                )
                raise Forbidden("You don't have permission to view this news article")
        return article

    @classmethod
    def list_all(cls) -> list[NewsArticle]:
        return list(cls._base())

    @classmethod
    def list_mine(cls, staff_id: int) -> list[NewsArticle]:
        return list(cls._base().filter(created_by_id=staff_id))

    @classmethod
    def search(cls, term: str | None) -> list[NewsArticle]:
        """Substring match on title, content, headline or any tag name."""
        queryset = cls._base()
        term = (term or "").strip()
        if term:
            queryset = queryset.filter(
                Q(title__icontains=term)
                | Q(content__icontains=term)
                | Q(headline__icontains=term)
                | Q(tags__name__icontains=term)
            ).distinct()
        return list(queryset)

    @classmethod
    def create(
        cls,
        staff_id: int,
        title: str,
        content: str,
        category_id: int,
        headline: str | None = None,
        source: str | None = None,
        status: bool = True,
        tags: list[str] | None = None,
    ) -> NewsArticle:
        tags = list(tags or [])
        category = Category.objects.filter(pk=category_id).first()
        if category is None:
            raise CategoryNotFound()
        if not category.is_active:
            raise InactiveCategory()
        cls._check_tag_count(tags)
        author = Account.objects.filter(pk=staff_id).first()
        if author is None:
            raise AuthorNotFound()

        with transaction.atomic():
            article = NewsArticle.objects.create(
                title=title.strip(),
                headline=_clean(headline),
                content=content.strip(),
                source=_clean(source),
                category=category,
                status=status,
                created_by=author,
                updated_by=author,
            )
            TagService.sync_for_article(article.pk, TagService.resolve_all(tags))

        logger.info("Account %s created article %s", staff_id, article.pk)
        return cls._fetch(article.pk)

    @classmethod
    def update(
        cls,
        article_id: int,
        staff_id: int,
        title: str,
        content: str,
        category_id: int,
        headline: str | None = None,
        source: str | None = None,
        status: bool = True,
        tags: list[str] | None = None,
    ) -> NewsArticle:
        tags = list(tags or [])
        article = cls._get(article_id)
        cls._ensure_owner(article, staff_id, "You can only update your own news articles")
        if not Category.objects.filter(pk=category_id).exists():
            raise CategoryNotFound()
        cls._check_tag_count(tags)

        with transaction.atomic():
            article.title = title.strip()
            article.headline = _clean(headline)
            article.content = content.strip()
            article.source = _clean(source)
            article.category_id = category_id
            article.status = status
            article.updated_by_id = staff_id
            article.modified_date = timezone.now()
            article.save()
            TagService.sync_for_article(article.pk, TagService.resolve_all(tags))

        logger.info("Account %s updated article %s", staff_id, article.pk)
        return cls._fetch(article.pk)

    @classmethod
    def delete(cls, article_id: int, staff_id: int) -> None:
        article = cls._get(article_id)
        cls._ensure_owner(article, staff_id, "You can only delete your own news articles")
        with transaction.atomic():
            article.delete()
        logger.info("Account %s deleted article %s", staff_id, article_id)

    @classmethod
    def toggle_status(cls, article_id: int, staff_id: int) -> NewsArticle:
        article = cls._get(article_id)
        return cls._store_status(article, staff_id, not article.status)

    @classmethod
    def set_status(cls, article_id: int, staff_id: int, status: bool) -> NewsArticle:
        article = cls._get(article_id)
        return cls._store_status(article, staff_id, status)

    @classmethod
    def _store_status(cls, article: NewsArticle, staff_id: int, status: bool) -> NewsArticle:
        cls._ensure_owner(
            article, staff_id, "You can only change the status of your own news articles"
        )
        article.status = status
        article.updated_by_id = staff_id
        article.modified_date = timezone.now()
        article.save(update_fields=["status", "updated_by", "modified_date"])
        logger.info("Account %s set article %s to %s", staff_id, article.pk, article.status_text)
        return cls._fetch(article.pk)

    @staticmethod
    def _get(article_id: int) -> NewsArticle:
        article = NewsArticle.objects.filter(pk=article_id).first()
        if article is None:
            raise NotFound(f"News article with ID {article_id} not found")
        return article

    @classmethod
    def _fetch(cls, article_id: int) -> NewsArticle:
        return cls._base().get(pk=article_id)

    @staticmethod
    def _ensure_owner(article: NewsArticle, staff_id: int | None, message: str) -> None:
        if staff_id is None or article.created_by_id != staff_id:
            logger.warning(
                "Account %s denied write on article %s owned by %s",
                staff_id,
                article.pk,
                article.created_by_id,
            )
            raise Forbidden(message)

    @staticmethod
    def _check_tag_count(tags: list[str]) -> None:
        if len([name for name in tags if name and name.strip()]) > MAX_TAGS_PER_ARTICLE:
            raise TooManyTags()


__all__ = [
    "AuthorNotFound",
    "CategoryNotFound",
    "CategoryService",
    "CircularReference",
    "DuplicateName",
    "InactiveCategory",
    "MAX_TAGS_PER_ARTICLE",
    "NewsArticleService",
    "ParentNotFound",
    "TagService",
    "TooManyTags",
]
