from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView, TokenVerifyView

from .views import (
    ForgotPasswordView, LoginTokenObtainPairView, MajorListView,
    RequestOtpView, ResetOtpView, ResetPasswordView, SignupView,
    UserDetailView, UserListView, VerifyOtpView,
)

urlpatterns = [
    path('signup/', SignupView.as_view(), name='auth_signup'),
    path('login/', LoginTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('token/verify/', TokenVerifyView.as_view(), name='token_verify'),
    path('request-otp/', RequestOtpView.as_view(), name='request_otp'),
    path('reset-otp/', ResetOtpView.as_view(), name='reset_otp'),
    path('verify-otp/', VerifyOtpView.as_view(), name='verify_otp'),
    path('forgot-password/', ForgotPasswordView.as_view(), name='forgot_password'),
    path('reset-password/', ResetPasswordView.as_view(), name='reset_password'),
    path('majors/', MajorListView.as_view(), name='major_list'),
    path('users/', UserListView.as_view(), name='user_list'),
    path('users/<str:student_id>/', UserDetailView.as_view(), name='user_detail'),
]
