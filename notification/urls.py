from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import NotificationViewSet

router = DefaultRouter()

# /notification/info/ 与 unread-count、mark-as-read、mark-all-as-read
router.register(r'info', NotificationViewSet, basename='notification')

urlpatterns = [
    path('', include(router.urls)),
]
