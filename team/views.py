from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from team.models import Team
from . import services
from .serializers import (
    JoinTeamSerializer, MemberDecisionSerializer, StopTeamSerializer, TeamSerializer,
)


class TeamViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    """
    团队接口：浏览、申请加入、队长审批、停止招募、解散
    具体业务规则在 services 中实现
    """
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['competition', 'status']

    def get_queryset(self):
        return Team.objects.select_related(
            'leader__major',
            'competition'
        ).prefetch_related(
            'memberships__user'
        ).order_by('-created_at')

    def _acting_user(self, serializer):
        """请求体中的 user_id / leader_id 必须是当前登录用户本人"""
        serializer.is_valid(raise_exception=True)
        if serializer.acting_user_id(self.request) != self.request.user.pk:
            raise PermissionDenied("You can only act on your own behalf")
        return self.request.user

    def retrieve(self, request, *args, **kwargs):
        """GET /teams/{id}/ 返回 {team: ...}"""
        team = services.get_team(kwargs['pk'])
        return Response({"team": TeamSerializer(team).data})

    def destroy(self, request, *args, **kwargs):
        """队长解散团队 DELETE /teams/{id}/"""
        result = services.delete_team(kwargs['pk'], request.user)
        return Response(result, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'], url_path='join')
    def join(self, request, pk=None):
        """
        申请加入团队
        POST /teams/{id}/join/
        data: {"user_id": 可选，默认当前用户}
        """
        user = self._acting_user(JoinTeamSerializer(data=request.data))
        team = services.request_join(pk, user)
        return Response(TeamSerializer(team).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['patch'], url_path='members')
    def members(self, request, pk=None):
        """
        队长审批加入申请
        PATCH /teams/{id}/members/
        data: {"member_id": 1, "action": "approve" or "reject"}
        """
        serializer = MemberDecisionSerializer(data=request.data)
        leader = self._acting_user(serializer)
        result = services.decide(
            pk,
            leader,
            serializer.validated_data['member_id'],
            serializer.validated_data['action'],
        )
        if 'team' in result:
            result = {"team": TeamSerializer(result['team']).data, "status": result['status']}
        return Response(result)

    @action(detail=True, methods=['post'], url_path='stopPublication')
    def stop_publication(self, request, pk=None):
        """
        队长停止招募
        POST /teams/{id}/stopPublication/
        """
        leader = self._acting_user(StopTeamSerializer(data=request.data))
        team = services.stop_publication(pk, leader)
        return Response(TeamSerializer(team).data)
