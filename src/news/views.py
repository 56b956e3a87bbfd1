"""ViewSets for categories, tags and news articles, guarded by RolePermission."""

from rest_framework import status
from rest_framework.decorators import action

from access_control.permissions import RolePermission
from access_control.roles import ALLOW_ANY, Role
from core.response import BaseViewSet, api_response
from .serializers import (
    ArticleDetailSerializer,
    ArticleListSerializer,
    ArticlePublicSerializer,
    ArticleStatusSerializer,
    ArticleWriteSerializer,
    CategoryDeleteReportSerializer,
    CategoryDetailSerializer,
    CategoryListSerializer,
    CategorySearchSerializer,
    CategorySimpleSerializer,
    CategoryStatusSerializer,
    CategoryTreeSerializer,
    CategoryWriteSerializer,
    TagSerializer,
)
from .services import CategoryService, NewsArticleService, TagService

STAFF_ONLY = (Role.STAFF,)
STAFF_OR_ADMIN = (Role.STAFF, Role.ADMIN)


def _caller_id(request) -> int | None:
    """Id of the authenticated caller, or None for anonymous requests."""
    user = request.user
    if not getattr(user, "is_authenticated", False):
        return None
    return user.id


class CategoryViewSet(BaseViewSet):
    """Category hierarchy management; reads are public only for active/tree."""

    permission_classes = [RolePermission]
    allowed_roles = {
        "active": ALLOW_ANY,
        "tree": ALLOW_ANY,
        "list": STAFF_OR_ADMIN,
        "retrieve": STAFF_OR_ADMIN,
        "search": STAFF_OR_ADMIN,
        "search_paged": STAFF_OR_ADMIN,
        "roots": STAFF_OR_ADMIN,
        "subcategories": STAFF_OR_ADMIN,
        "can_delete": STAFF_OR_ADMIN,
        "create": STAFF_ONLY,
        "update": STAFF_ONLY,
        "destroy": STAFF_ONLY,
        "toggle_status": STAFF_ONLY,
        "set_status": STAFF_ONLY,
    }
    lookup_value_regex = r"\d+"

    # noinspection PyMethodMayBeStatic
    def list(self, request):
        categories = CategoryService.list_all()
        return api_response(
            CategoryListSerializer(categories, many=True).data,
            message=f"Retrieved {len(categories)} categories successfully",
        )

    # noinspection PyMethodMayBeStatic
    def retrieve(self, request, pk=None):
        category = CategoryService.get_by_id(int(pk))
        return api_response(
            CategoryDetailSerializer(category).data, message="Category retrieved successfully"
        )

    # noinspection PyMethodMayBeStatic
    def create(self, request):
        serializer = CategoryWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = CategoryService.create(**serializer.validated_data)
        return api_response(
            CategoryDetailSerializer(category).data,
            message="Category created successfully",
            status=status.HTTP_201_CREATED,
        )

    # noinspection PyMethodMayBeStatic
    def update(self, request, pk=None):
        serializer = CategoryWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = CategoryService.update(int(pk), **serializer.validated_data)
        return api_response(
            CategoryDetailSerializer(category).data, message="Category updated successfully"
        )

    # noinspection PyMethodMayBeStatic
    def destroy(self, request, pk=None):
        CategoryService.delete(int(pk))
        return api_response(None, message="Category deleted successfully")

    @action(detail=False, methods=["get"])
    def active(self, request):
        categories = CategoryService.list_active()
        return api_response(
            CategorySimpleSerializer(categories, many=True).data,
            message=f"Retrieved {len(categories)} active categories",
        )

    @action(detail=False, methods=["get"])
    def tree(self, request):
        nodes = CategoryService.get_tree()
        return api_response(
            CategoryTreeSerializer(nodes, many=True).data,
            message="Category tree retrieved successfully",
        )

    @action(detail=False, methods=["get"])
    def search(self, request):
        """Substring search on name or description (``?keyword=``)."""
        keyword = request.query_params.get("keyword", "")
        categories = CategoryService.search(keyword)
        return api_response(
            CategoryListSerializer(categories, many=True).data,
            message=f"Found {len(categories)} categories matching '{keyword.strip()}'",
        )

    @action(detail=False, methods=["post"], url_path="search/paged")
    def search_paged(self, request):
        serializer = CategorySearchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        page = CategoryService.search_paged(
            search_term=params["search_term"],
            is_active=params["is_active"],
            parent_id=params["parent_category_id"],
            page_number=params["page_number"],
            page_size=params["page_size"],
        )
        items = CategoryListSerializer(page.items, many=True).data
        return api_response(
            page.to_dict(items), message=f"Retrieved page {page.page_number} of categories"
        )

    @action(detail=False, methods=["get"])
    def roots(self, request):
        categories = CategoryService.get_root_categories()
        return api_response(CategoryListSerializer(categories, many=True).data)

    @action(detail=True, methods=["get"])
    def subcategories(self, request, pk=None):
        categories = CategoryService.get_sub_categories(int(pk))
        return api_response(
            CategoryListSerializer(categories, many=True).data,
            message=f"Retrieved {len(categories)} sub-categories",
        )

    @action(detail=True, methods=["get"], url_path="can-delete")
    def can_delete(self, request, pk=None):
        report = CategoryService.delete_report(int(pk))
        return api_response(
            CategoryDeleteReportSerializer(report).data,
            message="Category delete check completed",
        )

    @action(detail=True, methods=["patch"], url_path="toggle-status")
    def toggle_status(self, request, pk=None):
        category = CategoryService.toggle_status(int(pk))
        return api_response(
            CategoryDetailSerializer(category).data,
            message=f"Category status changed to {'Active' if category.is_active else 'Inactive'}",
        )

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = CategoryStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = CategoryService.set_status(int(pk), serializer.validated_data["is_active"])
        return api_response(
            CategoryDetailSerializer(category).data,
            message=f"Category status changed to {'Active' if category.is_active else 'Inactive'}",
        )


class NewsArticleViewSet(BaseViewSet):
    """News article lifecycle; writes are restricted to the owning staff member."""

    permission_classes = [RolePermission]
    allowed_roles = {
        "active": ALLOW_ANY,
        "retrieve": ALLOW_ANY,
        "tags": ALLOW_ANY,
        "list": STAFF_OR_ADMIN,
        "search": STAFF_OR_ADMIN,
        "my_articles": STAFF_ONLY,
        "create": STAFF_ONLY,
        "update": STAFF_ONLY,
        "destroy": STAFF_ONLY,
        "toggle_status": STAFF_ONLY,
        "set_status": STAFF_ONLY,
    }
    lookup_value_regex = r"\d+"

    def _context(self) -> dict:
        return {"viewer_id": _caller_id(self.request)}

    def list(self, request):
        articles = NewsArticleService.list_all()
        return api_response(
            ArticleListSerializer(articles, many=True, context=self._context()).data,
            message=f"Retrieved {len(articles)} news articles",
        )

    def retrieve(self, request, pk=None):
        article = NewsArticleService.get_by_id(int(pk), caller_id=_caller_id(request))
        return api_response(
            ArticleDetailSerializer(article, context=self._context()).data,
            message="News article retrieved successfully",
        )

    def create(self, request):
        serializer = ArticleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = NewsArticleService.create(request.user.id, **serializer.validated_data)
        return api_response(
            ArticleDetailSerializer(article, context=self._context()).data,
            message="News article created successfully",
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        serializer = ArticleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = NewsArticleService.update(int(pk), request.user.id, **serializer.validated_data)
        return api_response(
            ArticleDetailSerializer(article, context=self._context()).data,
            message="News article updated successfully",
        )

    # noinspection PyMethodMayBeStatic
    def destroy(self, request, pk=None):
        NewsArticleService.delete(int(pk), request.user.id)
        return api_response(None, message="News article deleted successfully")

    @action(detail=False, methods=["get"])
    def active(self, request):
        articles = NewsArticleService.list_active_public()
        return api_response(
            ArticlePublicSerializer(articles, many=True).data,
            message=f"Retrieved {len(articles)} active news articles",
        )

    @action(detail=False, methods=["get"], url_path="my-articles")
    def my_articles(self, request):
        articles = NewsArticleService.list_mine(request.user.id)
        return api_response(
            ArticleListSerializer(articles, many=True, context=self._context()).data,
            message=f"Retrieved {len(articles)} news articles created by you",
        )

    @action(detail=False, methods=["get"])
    def search(self, request):
        """Substring search on title, content, headline or tag (``?keyword=``)."""
        articles = NewsArticleService.search(request.query_params.get("keyword"))
        return api_response(
            ArticleListSerializer(articles, many=True, context=self._context()).data,
            message=f"Found {len(articles)} news articles",
        )

    @action(detail=True, methods=["get"])
    def tags(self, request, pk=None):
        # Same visibility gate as retrieve.
        article = NewsArticleService.get_by_id(int(pk), caller_id=_caller_id(request))
        tags = TagService.list_for_article(article.pk)
        return api_response(TagSerializer(tags, many=True).data)

    @action(detail=True, methods=["patch"], url_path="toggle-status")
    def toggle_status(self, request, pk=None):
        article = NewsArticleService.toggle_status(int(pk), request.user.id)
        return api_response(
            ArticleDetailSerializer(article, context=self._context()).data,
            message=f"News article status changed to {article.status_text}",
        )

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = ArticleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = NewsArticleService.set_status(
            int(pk), request.user.id, serializer.validated_data["status"]
        )
        return api_response(
            ArticleDetailSerializer(article, context=self._context()).data,
            message=f"News article status changed to {article.status_text}",
        )


class TagViewSet(BaseViewSet):
    """Public, read-only tag listing."""

    permission_classes = [RolePermission]
    allowed_roles = {"default": ALLOW_ANY}

    # noinspection PyMethodMayBeStatic
    def list(self, request):
        return api_response(TagSerializer(TagService.list_all(), many=True).data)

    @action(detail=False, methods=["get"])
    def search(self, request):
        tags = TagService.search_by_name(request.query_params.get("keyword"))
        return api_response(TagSerializer(tags, many=True).data)


__all__ = ["CategoryViewSet", "NewsArticleViewSet", "TagViewSet"]
