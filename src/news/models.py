"""Categories, tags and news articles.

``Category.news_article_count`` and ``Category.sub_category_count`` are not
columns: ``CategoryService`` annotates them on every queryset it returns.
"""

from django.db import models
from django.db.models.functions import Lower

PREVIEW_LENGTH = 200


class Category(models.Model):
    """Self-referencing category; the parent chain is kept acyclic by the service."""

    id = models.SmallAutoField(primary_key=True)
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, null=True, blank=True)
    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sub_categories",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"
        constraints = [
            models.UniqueConstraint(Lower("name"), name="unique_category_name_ci"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    @property
    def can_delete(self) -> bool:
        return self.news_article_count == 0 and self.sub_category_count == 0


class Tag(models.Model):
    """Free-form label, created on first use and matched case-insensitively."""

    name = models.CharField(max_length=50)
    note = models.CharField(max_length=255, null=True, blank=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(Lower("name"), name="unique_tag_name_ci"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class NewsArticle(models.Model):
    """Article owned permanently by ``created_by``."""

    title = models.CharField(max_length=200)
    headline = models.CharField(max_length=500, null=True, blank=True)
    content = models.TextField()
    source = models.CharField(max_length=200, null=True, blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="articles")
    status = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        "accounts.Account", on_delete=models.PROTECT, related_name="articles"
    )
    updated_by = models.ForeignKey(
        "accounts.Account", on_delete=models.PROTECT, related_name="+"
    )
    created_date = models.DateTimeField(auto_now_add=True)
    modified_date = models.DateTimeField(null=True, blank=True)
    tags = models.ManyToManyField(Tag, through="NewsTag", related_name="articles")

    class Meta:
        ordering = ["-created_date", "-id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title

    @property
    def status_text(self) -> str:
        return "Active" if self.status else "Inactive"

    @property
    def content_preview(self) -> str:
        if len(self.content) <= PREVIEW_LENGTH:
            return self.content
        return self.content[:PREVIEW_LENGTH] + "..."


class NewsTag(models.Model):
    """Association row between an article and a tag."""

    article = models.ForeignKey(NewsArticle, on_delete=models.CASCADE, related_name="news_tags")
    tag = models.ForeignKey(Tag, on_delete=models.PROTECT, related_name="news_tags")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["article", "tag"], name="unique_news_tag"),
        ]


__all__ = ["Category", "NewsArticle", "NewsTag", "Tag", "PREVIEW_LENGTH"]
