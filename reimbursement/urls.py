from django.urls import path, include
from rest_framework import routers
from .views import ReimbursementAdminViewSet

router = routers.DefaultRouter()
router.register('reimbursements', ReimbursementAdminViewSet, basename='reimbursement')

urlpatterns = [
    path('', include(router.urls)),
]
