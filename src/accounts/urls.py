"""URL patterns for authentication and account management."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import AccountViewSet, LoginView, LogoutView, MeView

router = SimpleRouter()
router.register(r"accounts", AccountViewSet, basename="account")

auth_urlpatterns = [
    path("login/", LoginView.as_view(), name="auth-login"),
    path("logout/", LogoutView.as_view(), name="auth-logout"),
    path("me/", MeView.as_view(), name="auth-me"),
]

urlpatterns = [
    path("auth/", include(auth_urlpatterns)),
    path("", include(router.urls)),
]
