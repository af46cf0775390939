import os
import time

from django.conf import settings
from django.db import models
from django.utils import timezone

from reimbursement.models import ReimburseStatus
from .validators import upload_validators


def _renamed_upload(folder, filename):
    """按 目录-时间戳.后缀 重命名上传文件"""
    ext = os.path.splitext(filename)[1].lower()
    return os.path.join(folder, timezone.now().strftime('%Y/%m'), f"{folder}-{int(time.time() * 1000)}{ext}")


def poster_upload_path(instance, filename):
    return _renamed_upload('poster', filename)


def evidence_upload_path(instance, filename):
    return _renamed_upload('evidence', filename)


def certificate_upload_path(instance, filename):
    return _renamed_upload('certificate', filename)


class CompetitionLevel(models.TextChoices):
    PROVINCIAL = 'Provincial', 'Provincial'
    NATIONAL = 'National', 'National'
    INTERNATIONAL = 'International', 'International'


class CompetitionType(models.TextChoices):
    INDIVIDUAL = 'Individual', 'Individual'
    TEAM = 'Team', 'Team'


class Competition(models.Model):
    """竞赛核心信息"""
    title = models.CharField(max_length=255, verbose_name="竞赛名称")
    description = models.TextField(verbose_name="竞赛简介", blank=True, default='')
    category = models.CharField(max_length=100, verbose_name="竞赛类别")
    level = models.CharField(max_length=20, choices=CompetitionLevel.choices, verbose_name="竞赛级别")
    type = models.CharField(max_length=20, choices=CompetitionType.choices, verbose_name="参赛形式")

    poster = models.FileField(upload_to=poster_upload_path, validators=upload_validators, verbose_name="海报")
    registration_link = models.URLField(max_length=2048, blank=True, default='', verbose_name="报名链接")
    guidebook_link = models.URLField(max_length=2048, blank=True, default='', verbose_name="竞赛手册")

    start_date = models.DateTimeField(verbose_name="开始时间")
    end_date = models.DateTimeField(verbose_name="结束时间")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sys_competition'
        verbose_name = "竞赛信息"
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def has_ended(self):
        return self.end_date < timezone.now()


class CompetitionResult(models.Model):
    """参赛成绩：团队成员共享队长的成绩记录"""
    competition = models.ForeignKey(Competition, on_delete=models.CASCADE, related_name='results')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='competition_results')

    result = models.TextField(blank=True, default='', verbose_name="成绩")
    evidence = models.FileField(upload_to=evidence_upload_path, validators=upload_validators, blank=True, verbose_name="佐证材料")
    certificate = models.FileField(upload_to=certificate_upload_path, validators=upload_validators, blank=True, verbose_name="获奖证书")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sys_competition_result'
        verbose_name = "参赛成绩"
        constraints = [
            models.UniqueConstraint(fields=['user', 'competition'], name='unique_result_per_user_competition')
        ]

    def __str__(self):
        return f"{self.competition} - {self.user}"


class CompetitionParticipant(models.Model):
    """用户在某个竞赛中的报名记录，每人每赛仅一条"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='participations')
    competition = models.ForeignKey(Competition, on_delete=models.CASCADE, related_name='participants')
    team = models.ForeignKey(
        'team.Team',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='participants'
    )
    is_leader = models.BooleanField(default=False)
    result = models.ForeignKey(
        CompetitionResult,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='participants'
    )
    reimburse_status = models.CharField(max_length=20, choices=ReimburseStatus.choices, null=True, blank=True)

    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sys_competition_participant'
        verbose_name = "参赛记录"
        constraints = [
            models.UniqueConstraint(fields=['user', 'competition'], name='unique_participant_per_competition')
        ]

    def __str__(self):
        return f"{self.user} @ {self.competition}"
