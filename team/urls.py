from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import TeamViewSet

router = SimpleRouter()

# /teams/ 与 /teams/{id}/...
router.register(r'', TeamViewSet, basename='team')

urlpatterns = [
    path('', include(router.urls)),
]
