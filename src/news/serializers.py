"""Serializers projecting categories, tags and articles into API payloads."""

from rest_framework import serializers

from .models import Category, NewsArticle, Tag


class TagSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tag
        fields = ["id", "name", "note"]
        read_only_fields = fields


# --------------------------------------------------------------------------- #
# Categories
# --------------------------------------------------------------------------- #


class CategorySimpleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "is_active"]
        read_only_fields = fields


class CategoryListSerializer(serializers.ModelSerializer):
    """Row projection; expects the counts annotated by ``CategoryService``."""

    parent_id = serializers.IntegerField(read_only=True, allow_null=True)
    parent_name = serializers.CharField(source="parent.name", read_only=True, default=None)
    news_article_count = serializers.IntegerField(read_only=True)
    sub_category_count = serializers.IntegerField(read_only=True)
    can_delete = serializers.BooleanField(read_only=True)

    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "description",
            "parent_id",
            "parent_name",
            "is_active",
            "news_article_count",
            "sub_category_count",
            "can_delete",
        ]
        read_only_fields = fields


class CategoryDetailSerializer(CategoryListSerializer):
    sub_categories = CategoryListSerializer(
        source="direct_sub_categories", many=True, read_only=True
    )

    class Meta(CategoryListSerializer.Meta):
        fields = CategoryListSerializer.Meta.fields + ["sub_categories"]
        read_only_fields = fields


class CategoryWriteSerializer(serializers.Serializer):
    """Create/update payload for a category."""

    name = serializers.CharField(max_length=100)
    description = serializers.CharField(
        max_length=500, required=False, allow_blank=True, allow_null=True, default=None
    )
    parent_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    is_active = serializers.BooleanField(required=False, default=True)


class CategoryStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class CategorySearchSerializer(serializers.Serializer):
    search_term = serializers.CharField(
        max_length=100, required=False, allow_blank=True, allow_null=True, default=None
    )
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    parent_category_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    page_number = serializers.IntegerField(required=False, min_value=1, default=1)
    page_size = serializers.IntegerField(required=False, min_value=1, max_value=100, default=10)


class CategoryDeleteReportSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    can_delete = serializers.BooleanField()
    news_article_count = serializers.IntegerField()
    sub_category_count = serializers.IntegerField()
    reason = serializers.CharField()


class CategoryTreeSerializer(serializers.Serializer):
    """Recursive tree node built from ``news.tree.TreeNode``."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    is_active = serializers.BooleanField()
    news_article_count = serializers.IntegerField()
    children = serializers.SerializerMethodField()

    def get_children(self, obj) -> list[dict]:
        return CategoryTreeSerializer(obj.children, many=True).data


# --------------------------------------------------------------------------- #
# News articles
# --------------------------------------------------------------------------- #


class ArticlePublicSerializer(serializers.ModelSerializer):
    """Anonymous view of a published article."""

    category_name = serializers.CharField(source="category.name", read_only=True)
    tags = TagSerializer(many=True, read_only=True)

    class Meta:
        model = NewsArticle
        fields = [
            "id",
            "title",
            "headline",
            "content",
            "source",
            "category_name",
            "created_date",
            "tags",
        ]
        read_only_fields = fields


class ArticleListSerializer(serializers.ModelSerializer):
    """Back-office row; ``can_edit``/``can_delete`` compare against ``viewer_id``."""

    category_id = serializers.IntegerField(read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True)
    created_by_id = serializers.IntegerField(read_only=True)
    created_by_name = serializers.CharField(source="created_by.name", read_only=True)
    created_by_email = serializers.CharField(source="created_by.email", read_only=True)
    tags = TagSerializer(many=True, read_only=True)
    tag_count = serializers.SerializerMethodField()
    can_edit = serializers.SerializerMethodField()
    can_delete = serializers.SerializerMethodField()

    class Meta:
        model = NewsArticle
        fields = [
            "id",
            "title",
            "headline",
            "content_preview",
            "source",
            "category_id",
            "category_name",
            "status",
            "status_text",
            "created_by_id",
            "created_by_name",
            "created_by_email",
            "created_date",
            "modified_date",
            "tags",
            "tag_count",
            "can_edit",
            "can_delete",
        ]
        read_only_fields = fields

    @staticmethod
    def get_tag_count(obj) -> int:
        return len(obj.tags.all())

    def _is_owner(self, obj) -> bool:
        viewer_id = self.context.get("viewer_id")
        return viewer_id is not None and viewer_id == obj.created_by_id

    def get_can_edit(self, obj) -> bool:
        return self._is_owner(obj)

    def get_can_delete(self, obj) -> bool:
        return self._is_owner(obj)


class ArticleDetailSerializer(ArticleListSerializer):
    category_description = serializers.CharField(
        source="category.description", read_only=True, default=None
    )
    created_by_role = serializers.SerializerMethodField()
    updated_by_id = serializers.IntegerField(read_only=True)
    updated_by_name = serializers.CharField(source="updated_by.name", read_only=True)

    class Meta(ArticleListSerializer.Meta):
        fields = [
            "id",
            "title",
            "headline",
            "content",
            "source",
            "category_id",
            "category_name",
            "category_description",
            "status",
            "status_text",
            "created_by_id",
            "created_by_name",
            "created_by_email",
            "created_by_role",
            "updated_by_id",
            "updated_by_name",
            "created_date",
            "modified_date",
            "tags",
            "tag_count",
            "can_edit",
            "can_delete",
        ]
        read_only_fields = fields

    @staticmethod
    def get_created_by_role(obj) -> str:
        return obj.created_by.get_role_display()


class ArticleWriteSerializer(serializers.Serializer):
    """Create/update payload; ``tags`` are names, resolved by ``TagService``."""

    title = serializers.CharField(max_length=200)
    headline = serializers.CharField(
        max_length=500, required=False, allow_blank=True, allow_null=True, default=None
    )
    content = serializers.CharField()
    source = serializers.CharField(
        max_length=200, required=False, allow_blank=True, allow_null=True, default=None
    )
    category_id = serializers.IntegerField()
    status = serializers.BooleanField(required=False, default=True)
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, default=list
    )


class ArticleStatusSerializer(serializers.Serializer):
    status = serializers.BooleanField()


__all__ = [
    "ArticleDetailSerializer",
    "ArticleListSerializer",
    "ArticlePublicSerializer",
    "ArticleStatusSerializer",
    "ArticleWriteSerializer",
    "CategoryDeleteReportSerializer",
    "CategoryDetailSerializer",
    "CategoryListSerializer",
    "CategorySearchSerializer",
    "CategorySimpleSerializer",
    "CategoryStatusSerializer",
    "CategoryTreeSerializer",
    "CategoryWriteSerializer",
    "TagSerializer",
]
