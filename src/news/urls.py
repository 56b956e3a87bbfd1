"""Routing for the category, news article and tag viewsets."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import CategoryViewSet, NewsArticleViewSet, TagViewSet

router = DefaultRouter()
router.register(r"category", CategoryViewSet, basename="category")
router.register(r"newsarticles", NewsArticleViewSet, basename="newsarticle")
router.register(r"tags", TagViewSet, basename="tag")

urlpatterns = [
    path("", include(router.urls)),
]
