from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('auth/', include('userManage.urls')),
    path('profile/', include('userProfile.urls')),
    path('competitions/', include('competitions.urls')),
    path('teams/', include('team.urls')),
    path('notification/', include('notification.urls')),
    path('admin-panel/', include('reimbursement.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
