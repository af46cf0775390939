import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import generics, status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.views import TokenObtainPairView

from .models import Major
from .serializers import (
    MajorSerializer, ResetPasswordSerializer, SignupSerializer,
    StudentIdSerializer, UserSerializer, VerifyOtpSerializer,
)
from .utils import UserFilter, issue_otp
from . import permissions

User = get_user_model()
logger = logging.getLogger(__name__)


class SignupView(generics.CreateAPIView):
    """
    学生注册：创建账号后发送邮箱验证码
    POST /auth/signup/
    """
    serializer_class = SignupSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # 邮件发送失败时账号一并回滚
        with transaction.atomic():
            user = serializer.save()
            issue_otp(user)

        logger.info("User %s signed up", user.student_id)
        return Response({
            "message": "Signup successful, please check your email for the OTP",
            "student_id": user.student_id,
            "roles": [g.name for g in user.groups.all()],
        }, status=status.HTTP_201_CREATED)


# 自定义登录返回数据
class LoginTokenObtainPairSerializer(TokenObtainPairSerializer):
    default_error_messages = {
        'no_active_account': 'Invalid student id or password.',
    }

    def validate(self, attrs):
        data = super().validate(attrs)
        data['student_id'] = self.user.student_id
        data['name'] = self.user.name
        data['is_verified'] = self.user.is_verified
        data['roles'] = [group.name for group in self.user.groups.all()]
        return data


class LoginTokenObtainPairView(TokenObtainPairView):
    serializer_class = LoginTokenObtainPairSerializer


def _get_user_or_401(student_id, message):
    user = User.objects.filter(student_id=student_id).first()
    if user is None:
        raise AuthenticationFailed(message)
    return user


class RequestOtpView(APIView):
    """重新发送验证码 POST /auth/request-otp/"""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = StudentIdSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = _get_user_or_401(serializer.validated_data['student_id'], 'Student ID not found.')
        issue_otp(user, subject='Your OTP Code')
        return Response({"message": "OTP sent"})


class ResetOtpView(APIView):
    """作废当前验证码 POST /auth/reset-otp/"""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = StudentIdSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = _get_user_or_401(serializer.validated_data['student_id'], 'Student ID not found.')
        user.otp = ''
        user.save(update_fields=['otp'])
        return Response({"message": "OTP reset"})


class VerifyOtpView(APIView):
    """校验验证码并标记邮箱已验证 POST /auth/verify-otp/"""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = VerifyOtpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = User.objects.filter(student_id=data['student_id']).first()
        if not user or not user.otp or user.otp != data['otp']:
            raise AuthenticationFailed('Invalid OTP.')

        user.otp = ''
        user.is_verified = True
        user.save(update_fields=['otp', 'is_verified'])
        return Response({"user": UserSerializer(user).data, "status": True})


class ForgotPasswordView(APIView):
    """忘记密码：发送重置验证码 POST /auth/forgot-password/"""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = StudentIdSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = _get_user_or_401(serializer.validated_data['student_id'], 'Student ID not found.')
        issue_otp(user, subject='Password Reset OTP')
        return Response({"message": "Password reset OTP sent"})


class ResetPasswordView(APIView):
    """凭验证码重置密码 POST /auth/reset-password/"""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = User.objects.filter(student_id=data['student_id']).first()
        if not user or not user.otp or user.otp != data['otp']:
            raise AuthenticationFailed('Invalid OTP.')

        user.set_password(data['new_password'])
        user.otp = ''
        user.save(update_fields=['password', 'otp'])
        logger.info("Password reset for %s", user.student_id)
        return Response({"message": "Password has been reset"})


class MajorListView(generics.ListAPIView):
    queryset = Major.objects.all()
    serializer_class = MajorSerializer
    permission_classes = [AllowAny]
    pagination_class = None


# 获取所有用户视图
class UserListView(generics.ListAPIView):
    queryset = User.objects.select_related('major').prefetch_related('groups')
    serializer_class = UserSerializer
    filterset_class = UserFilter
    permission_classes = [permissions.IsCompAdmin]


# 查询、更新、删除单个用户
class UserDetailView(generics.RetrieveUpdateDestroyAPIView):
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [
        permissions.IsAdmin,
        permissions.NotModifyingSelf,
    ]
    lookup_field = 'student_id'
