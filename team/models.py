from django.db import models
from django.conf import settings


class TeamStatus(models.TextChoices):
    ACTIVE = 'ACTIVE', 'Active'
    INACTIVE = 'INACTIVE', 'Inactive'


class Team(models.Model):
    # 1. 关联竞赛
    competition = models.ForeignKey(
        'competitions.Competition',
        on_delete=models.CASCADE,
        related_name='teams'
    )

    class Meta:
        db_table = 'sys_team'
        constraints = [
            models.UniqueConstraint(
                fields=['competition', 'leader'],
                name='unique_leader_per_competition'
            ),
            models.UniqueConstraint(
                fields=['competition', 'name'],
                name='unique_team_name_per_competition'
            ),
        ]

    # 2. 人员结构：队长不计入 members，按加入顺序排列
    name = models.CharField(max_length=100, verbose_name="团队名称")
    leader = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='led_teams')
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through='TeamMembership',
        related_name='joined_teams',
        blank=True
    )
    description = models.TextField(blank=True, default='', verbose_name="招募说明")
    phone = models.CharField(max_length=20, blank=True, default='', verbose_name="联系电话")

    # 3. 名额：open_slots = max_members - 1 - 成员数
    max_members = models.PositiveIntegerField(verbose_name="最大人数（含队长）")
    open_slots = models.PositiveIntegerField(verbose_name="剩余名额")
    end_date = models.DateTimeField(null=True, blank=True, verbose_name="招募截止")

    # 4. 状态
    status = models.CharField(max_length=20, choices=TeamStatus.choices, default=TeamStatus.ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def ordered_members(self):
        return [m.user for m in self.memberships.select_related('user__major', 'user__profile').order_by('joined_at', 'id')]


class TeamMembership(models.Model):
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='team_memberships')
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sys_team_membership'
        ordering = ['joined_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['team', 'user'], name='unique_team_member')
        ]


class PendingJoinRequest(models.Model):
    """加入申请：与发给队长的通知一一对应，队长处理或团队停招后删除"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='join_requests')
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='pending_requests')
    competition = models.ForeignKey('competitions.Competition', on_delete=models.CASCADE, related_name='pending_requests')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sys_pending_join_request'
        constraints = [
            models.UniqueConstraint(fields=['user', 'team'], name='unique_pending_request_per_team')
        ]

    def __str__(self):
        return f"{self.user} -> {self.team}"
