from django.utils import timezone
from rest_framework import serializers

from userManage.serializers import UserBriefSerializer
from .models import Team
from .services import APPROVE, REJECT


class CompetitionSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    category = serializers.CharField()
    level = serializers.CharField()
    end_date = serializers.DateTimeField()


class TeamSerializer(serializers.ModelSerializer):
    """团队详情：展开队长、成员（按加入顺序）和竞赛摘要"""
    leader = UserBriefSerializer(read_only=True)
    members = serializers.SerializerMethodField()
    competition = CompetitionSummarySerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = [
            'id', 'name', 'description', 'phone', 'status',
            'max_members', 'open_slots', 'member_count', 'end_date',
            'leader', 'members', 'competition', 'created_at',
        ]

    def get_members(self, obj):
        return UserBriefSerializer(obj.ordered_members(), many=True).data

    def get_member_count(self, obj):
        # 停招后 open_slots 归零，只能按实际成员数计算；+1 为队长
        return obj.memberships.count() + 1


class TeamListSerializer(serializers.ModelSerializer):
    """列表场景：只带队长摘要"""
    leader = UserBriefSerializer(read_only=True)
    competition_id = serializers.ReadOnlyField()

    class Meta:
        model = Team
        fields = ['id', 'name', 'description', 'status', 'open_slots', 'max_members',
                  'end_date', 'competition_id', 'leader']


class TeamCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    # 需要招募的人数（不含队长）
    open_slots = serializers.IntegerField(min_value=1)
    end_date = serializers.DateTimeField(required=False, allow_null=True, default=None)

    def validate_end_date(self, value):
        if value and value < timezone.now():
            raise serializers.ValidationError("End date must be in the future.")
        return value


class ActingUserSerializer(serializers.Serializer):
    """
    请求体里的用户 ID 可省略，默认取当前登录用户；
    显式传入时必须与登录用户一致，在视图中校验
    """
    acting_field = None

    def acting_user_id(self, request):
        value = self.validated_data.get(self.acting_field)
        return request.user.pk if value is None else value


class JoinTeamSerializer(ActingUserSerializer):
    acting_field = 'user_id'
    user_id = serializers.IntegerField(required=False)


class StopTeamSerializer(ActingUserSerializer):
    acting_field = 'leader_id'
    leader_id = serializers.IntegerField(required=False)


class MemberDecisionSerializer(ActingUserSerializer):
    acting_field = 'leader_id'
    leader_id = serializers.IntegerField(required=False)
    member_id = serializers.IntegerField()
    action = serializers.ChoiceField(choices=[APPROVE, REJECT])
