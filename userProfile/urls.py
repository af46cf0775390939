from django.urls import path
from .views import (
    MyCompetitionsView, MyProfileView, MyReimbursementDetailView, MyReimbursementListView,
    MyTeamsView, ProfileSearchByFieldNameView,
)

urlpatterns = [
    path('view/',
         MyProfileView.as_view(),
         name='profile'),
    path('search/',
         ProfileSearchByFieldNameView.as_view(), ),
    path('teams/', MyTeamsView.as_view(), name='profile-teams'),
    path('competitions/', MyCompetitionsView.as_view(), name='profile-competitions'),
    path('reimbursements/', MyReimbursementListView.as_view(), name='profile-reimbursements'),
    path('reimbursements/<int:pk>/', MyReimbursementDetailView.as_view(), name='profile-reimbursement-detail'),
]
