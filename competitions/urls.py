from django.urls import path, include, re_path
from rest_framework import routers

from .views import CompetitionViewSet

router = routers.DefaultRouter()

# /competitions/info/ 与 /competitions/info/{id}/join|team|teams|user-status|members|upload-result|reimburse/
router.register('info', CompetitionViewSet, basename='competition')

urlpatterns = [
    # 前端沿用的短路径：/competitions/{id}/user-status?userId=，末尾斜杠可省
    re_path(r'^(?P<pk>\d+)/user-status/?$',
            CompetitionViewSet.as_view({'get': 'user_status'}),
            name='competition-user-status-short'),
    path('', include(router.urls)),
]
