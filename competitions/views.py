from django.contrib.auth import get_user_model
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from team.serializers import TeamCreateSerializer, TeamListSerializer, TeamSerializer
from team.models import Team
from userManage.permissions import IsCompAdmin, IsCompAdminOrReadOnly, is_comp_admin
from userManage.serializers import UserBriefSerializer
from . import services
from .models import Competition
from .serializers import (
    CompetitionResultSerializer, CompetitionSerializer, ParticipantSerializer,
    ReimbursementSerializer, ReimbursementSubmitSerializer, ResultUploadSerializer,
    VerifyReimbursementSerializer,
)


class CompetitionViewSet(viewsets.ModelViewSet):
    """
    竞赛接口：管理员维护竞赛信息，学生报名、建队、上传成绩、申请报销
    """
    queryset = Competition.objects.all()
    serializer_class = CompetitionSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filterset_fields = ['category', 'level', 'type']

    # 登录学生即可调用的接口
    student_actions = ['join', 'create_team', 'teams', 'user_status', 'members', 'upload_result', 'reimburse']

    def get_permissions(self):
        if self.action in self.student_actions:
            return [permissions.IsAuthenticated()]
        if self.action == 'verify_reimbursement':
            return [IsCompAdmin()]
        return [IsCompAdminOrReadOnly()]

    def perform_update(self, serializer):
        # 更换海报时删除旧文件
        old_poster = serializer.instance.poster
        old_name = old_poster.name if old_poster else None
        instance = serializer.save()
        if old_name and instance.poster.name != old_name:
            old_poster.storage.delete(old_name)

    def perform_destroy(self, instance):
        poster = instance.poster
        instance.delete()
        if poster:
            poster.storage.delete(poster.name)

    def _target_user(self, request, user_id):
        """默认是当前用户；查询他人需要管理员权限"""
        if user_id in (None, '', str(request.user.pk)):
            return request.user
        if not is_comp_admin(request.user):
            raise PermissionDenied("You can only query your own status")
        user = get_user_model().objects.filter(pk=user_id).first() if user_id.isdigit() else None
        if user is None:
            raise NotFound(f"User with ID {user_id} not found")
        return user

    @action(detail=True, methods=['post'], url_path='join')
    def join(self, request, pk=None):
        """
        报名竞赛
        POST /competitions/info/{id}/join/
        """
        competition = self.get_object()
        services.join_competition(competition, request.user)
        return Response({"msg": "successfully joined competition"}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='team')
    def create_team(self, request, pk=None):
        """
        创建团队，当前用户为队长
        POST /competitions/info/{id}/team/
        data: {"name": "...", "open_slots": 3, "description": "...", "phone": "...", "end_date": "..."}
        """
        competition = self.get_object()
        serializer = TeamCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        team = services.create_team(competition, request.user, serializer.validated_data)
        return Response({
            "team": TeamSerializer(team).data,
            "leader": UserBriefSerializer(request.user).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'], url_path='teams')
    def teams(self, request, pk=None):
        """GET /competitions/info/{id}/teams/"""
        competition = self.get_object()
        teams = Team.objects.filter(competition=competition).select_related('leader__major').order_by('-created_at')
        return Response(TeamListSerializer(teams, many=True).data)

    @action(detail=True, methods=['get'], url_path='user-status')
    def user_status(self, request, pk=None):
        """
        当前用户在该竞赛下的状态
        GET /competitions/info/{id}/user-status/?user_id=
        GET /competitions/{id}/user-status?userId=
        """
        competition = self.get_object()
        user_id = request.query_params.get('userId', request.query_params.get('user_id'))
        user = self._target_user(request, user_id)
        data = services.get_user_status(competition, user)

        team = data['team_details']
        reimbursement = data['reimburse_detail']
        result = data['competition_result']
        return Response({
            "is_joined": data['is_joined'],
            "has_team": data['has_team'],
            "is_leader": data['is_leader'],
            "team_details": {
                "id": team.id,
                "name": team.name,
                "open_slots": team.open_slots,
                "leader_id": team.leader_id,
            } if team else None,
            "reimburse_detail": ReimbursementSerializer(reimbursement).data if reimbursement else None,
            "competition_result": CompetitionResultSerializer(result).data if result else None,
            "has_reimburse": data['has_reimburse'],
        })

    @action(detail=True, methods=['get'], url_path='members')
    def members(self, request, pk=None):
        """队长查看自己团队的成员 GET /competitions/info/{id}/members/"""
        competition = self.get_object()
        leader, members = services.get_leader_team_members(competition, request.user)
        return Response({
            "leader": UserBriefSerializer(leader).data,
            "members": UserBriefSerializer(members, many=True).data,
        })

    @action(detail=True, methods=['post'], url_path='upload-result')
    def upload_result(self, request, pk=None):
        """
        上传成绩
        POST /competitions/info/{id}/upload-result/  (multipart: result, evidence, certificate)
        """
        competition = self.get_object()
        serializer = ResultUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.upload_result(competition, request.user, serializer.validated_data)
        return Response({
            "message": "Result successfully uploaded.",
            "result": CompetitionResultSerializer(result, context={'request': request}).data,
        })

    @action(detail=True, methods=['post'], url_path='reimburse')
    def reimburse(self, request, pk=None):
        """
        提交报销申请
        POST /competitions/info/{id}/reimburse/  (multipart: name, bank_name, card_number, receipt)
        """
        competition = self.get_object()
        serializer = ReimbursementSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reimbursement = services.submit_reimbursement(competition, request.user, serializer.validated_data)
        return Response(
            ReimbursementSerializer(reimbursement, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'], url_path='verify-reimbursement')
    def verify_reimbursement(self, request, pk=None):
        """
        管理员审核报销
        POST /competitions/info/{id}/verify-reimbursement/
        data: {"status": "PROCESS" | "APPROVED" | "REJECTED", "user_id": 可选}
        """
        competition = self.get_object()
        serializer = VerifyReimbursementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reimbursement = services.verify_reimbursement(
            competition,
            serializer.validated_data['status'],
            serializer.validated_data.get('user_id'),
        )
        return Response({"id": reimbursement.id, "status": reimbursement.status})

    @action(detail=True, methods=['get'], url_path='participants')
    def participants(self, request, pk=None):
        """管理员查看报名记录 GET /competitions/info/{id}/participants/"""
        if not is_comp_admin(request.user):
            raise PermissionDenied("Only administrators can list participants")
        competition = self.get_object()
        return Response(ParticipantSerializer(competition.participants.all(), many=True).data)
