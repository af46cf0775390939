from django.db.models import Q
from rest_framework import filters, generics, permissions
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser

from competitions.models import Competition
from competitions.serializers import CompetitionSerializer, ReimbursementSerializer
from reimbursement.models import Reimbursement
from team.models import Team
from team.serializers import TeamListSerializer
from userManage.permissions import IsCompAdmin
from .models import Profile
from .serializers import ProfileSerializer


class MyProfileView(generics.RetrieveUpdateAPIView):
    """
    仅允许查看和修改“当前登录用户”自己的档案
    """
    serializer_class = ProfileSerializer
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get_object(self):
        # 不从 URL 获取 ID，直接取当前用户；档案不存在则自动创建
        profile, created = Profile.objects.get_or_create(user=self.request.user)
        return profile


class ProfileSearchByFieldNameView(generics.ListAPIView):
    """
    通过姓名或学号模糊查找用户档案
    """
    serializer_class = ProfileSerializer
    permission_classes = [IsCompAdmin]
    queryset = Profile.objects.all().select_related('user__major')
    filter_backends = [filters.SearchFilter]
    search_fields = ['user__name', 'user__student_id']


class MyTeamsView(generics.ListAPIView):
    """当前用户带领或加入的团队"""
    serializer_class = TeamListSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        return Team.objects.filter(
            Q(leader=user) | Q(memberships__user=user)
        ).select_related('leader__major').distinct().order_by('-created_at')


class MyCompetitionsView(generics.ListAPIView):
    serializer_class = CompetitionSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Competition.objects.filter(participants__user=self.request.user).distinct()


class MyReimbursementListView(generics.ListAPIView):
    serializer_class = ReimbursementSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Reimbursement.objects.filter(user=self.request.user).select_related('competition')


class MyReimbursementDetailView(generics.RetrieveAPIView):
    """只能查看自己的报销申请，他人的记录返回 404"""
    serializer_class = ReimbursementSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Reimbursement.objects.filter(user=self.request.user).select_related('competition')
