# users/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ProfileViewSet, UsernameCheckView

router = DefaultRouter()
router.register(r'profile', ProfileViewSet, basename='profile')

urlpatterns = [
    path('username-check/', UsernameCheckView.as_view(), name='username-check'),
    path('', include(router.urls)),
]
