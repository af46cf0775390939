"""
团队成员流程：申请加入、队长审批、停止招募、解散团队

名额不变式：open_slots == max_members - 1 - 成员数（队长占一个名额）。
审批通过时的名额扣减是带条件的原子更新，并发审批不会超员；
审批和解散的所有写操作都在同一个事务中，任一步失败整体回滚。
"""
import logging
import random
import time

from django.contrib.auth import get_user_model
from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F
from rest_framework.exceptions import APIException, NotFound, PermissionDenied

from competitionPlatform.exceptions import Conflict, OperationFailed
from competitions.models import CompetitionParticipant, CompetitionResult
from notification import services as notifications
from reimbursement.models import Reimbursement
from .models import PendingJoinRequest, Team, TeamMembership, TeamStatus

User = get_user_model()
logger = logging.getLogger(__name__)

APPROVE = 'approve'
REJECT = 'reject'

# 审批遇到写锁冲突时的重试次数与退避（秒）
LOCK_RETRIES = 8
LOCK_RETRY_DELAY = 0.05
LOCK_RETRY_BACKOFF = 2
LOCK_RETRY_MAX_DELAY = 1.0


def get_team(team_id):
    try:
        return Team.objects.select_related('competition', 'leader').get(pk=team_id)
    except (Team.DoesNotExist, ValueError):
        raise NotFound(f"Team with ID {team_id} not found")


def _ensure_leader(team, user, message):
    if team.leader_id != user.pk:
        raise PermissionDenied(message)


def request_join(team_id, user):
    """
    申请加入团队，检查顺序即报错优先级：
    团队存在 -> 有剩余名额 -> 不是成员 -> 没有重复申请 -> 未参加该竞赛。
    成功后记录申请并通知队长，返回团队本身。
    """
    team = get_team(team_id)

    if team.open_slots <= 0:
        raise Conflict('Team is already full')

    if team.memberships.filter(user=user).exists():
        raise Conflict('User is already a member of this team')

    if (PendingJoinRequest.objects.filter(user=user, team=team).exists()
            or notifications.exists_for(team, user)):
        raise Conflict('You have already sent a join request to this team')

    if CompetitionParticipant.objects.filter(user=user, competition_id=team.competition_id).exists():
        raise Conflict('User is already participating in this competition')

    try:
        with transaction.atomic():
            PendingJoinRequest.objects.create(user=user, team=team, competition_id=team.competition_id)
            notifications.notify_leader(team, user)
    except IntegrityError:
        # 并发的重复申请被唯一约束拦下
        raise Conflict('You have already sent a join request to this team')

    logger.info("User %s requested to join team %s", user.pk, team.pk)
    return team


def _add_member(team, member_id):
    locked = Team.objects.select_for_update().get(pk=team.pk)

    claimed = Team.objects.filter(pk=locked.pk, open_slots__gt=0).update(open_slots=F('open_slots') - 1)
    if not claimed:
        raise Conflict('Team is already full')

    member = User.objects.filter(pk=member_id).first()
    if member is None:
        raise NotFound(f"User with ID {member_id} not found")

    if locked.memberships.filter(user=member).exists():
        raise Conflict('User is already a member of this team')

    if CompetitionParticipant.objects.filter(user=member, competition_id=locked.competition_id).exists():
        raise Conflict('User is already participating in this competition')

    TeamMembership.objects.create(team=locked, user=member)

    # 新成员继承队长的报销状态和成绩记录
    leader_participant = CompetitionParticipant.objects.filter(
        user_id=locked.leader_id,
        competition_id=locked.competition_id,
    ).first()

    CompetitionParticipant.objects.create(
        user=member,
        competition_id=locked.competition_id,
        team=locked,
        is_leader=False,
        reimburse_status=leader_participant.reimburse_status if leader_participant else None,
        result_id=leader_participant.result_id if leader_participant else None,
    )

    locked.refresh_from_db()
    return locked


def decide(team_id, leader, member_id, action):
    """
    队长审批加入申请：approve 或 reject。
    sqlite 等只有库级写锁的后端上，并发审批会拿不到锁（OperationalError），
    此时整段事务已回滚，按指数退避重试；重试耗尽仍拿不到锁则按冲突处理
    """
    delay = LOCK_RETRY_DELAY
    for attempt in range(1, LOCK_RETRIES + 1):
        try:
            return _decide(team_id, leader, member_id, action)
        except OperationalError as exc:
            if attempt == LOCK_RETRIES:
                logger.error("Gave up %s member %s for team %s after %s attempts: %s",
                             action, member_id, team_id, attempt, exc)
                raise Conflict('Team is busy, please try again') from exc
            logger.debug("Team %s locked, retrying %s (attempt %s)", team_id, action, attempt)
            time.sleep(random.uniform(0, delay))
            delay = min(delay * LOCK_RETRY_BACKOFF, LOCK_RETRY_MAX_DELAY)


def _decide(team_id, leader, member_id, action):
    team = get_team(team_id)
    _ensure_leader(team, leader, 'Only team leader can perform this action')

    try:
        with transaction.atomic():
            notifications.clear_for(team, leader)
            PendingJoinRequest.objects.filter(user_id=member_id, team=team).delete()

            if action == REJECT:
                logger.info("Leader %s rejected user %s for team %s", leader.pk, member_id, team.pk)
                return {'msg': 'rejected by leader', 'status': 'rejected'}

            team = _add_member(team, member_id)
    except APIException:
        raise
    except IntegrityError:
        raise Conflict('User is already participating in this competition')
    except OperationalError:
        # 锁冲突交给 decide 重试
        raise
    except Exception as exc:
        logger.exception("Failed to %s member %s for team %s", action, member_id, team_id)
        raise OperationFailed(f'Failed to {action} team member') from exc

    logger.info("Leader %s approved user %s for team %s, %s slots left",
                leader.pk, member_id, team.pk, team.open_slots)
    return {'team': team, 'status': 'approved'}


def stop_publication(team_id, leader):
    """
    停止招募：名额清零并置为 INACTIVE，保留现有成员。
    竞赛已结束时同样写入停招状态，然后报错 Competition has expired，
    调用方不能把这个错误理解为“没有任何修改”。
    """
    team = get_team(team_id)
    _ensure_leader(team, leader, 'Only team leader can stop team publication')

    Team.objects.filter(pk=team.pk).update(open_slots=0, status=TeamStatus.INACTIVE)

    if team.competition.has_ended:
        logger.info("Team %s closed after competition %s expired", team.pk, team.competition_id)
        raise Conflict('Competition has expired')

    try:
        with transaction.atomic():
            PendingJoinRequest.objects.filter(team=team).delete()
            notifications.clear_for(team, leader)
    except Exception as exc:
        logger.exception("Failed to clean up requests for team %s", team.pk)
        raise OperationFailed('Failed to stop team publication') from exc

    logger.info("Team %s stopped publication", team.pk)
    team.refresh_from_db()
    return team


def delete_team(team_id, leader):
    """解散团队，级联删除参赛记录、成绩、报销、申请和通知"""
    team = get_team(team_id)
    _ensure_leader(team, leader, 'Only team leader can delete the team')

    # 删除前先取出成员和竞赛，后续删除依赖这些数据
    competition_id = team.competition_id
    user_ids = list(team.memberships.values_list('user_id', flat=True)) + [team.leader_id]

    try:
        with transaction.atomic():
            CompetitionParticipant.objects.filter(team=team).delete()
            CompetitionResult.objects.filter(competition_id=competition_id, user_id__in=user_ids).delete()
            Reimbursement.objects.filter(competition_id=competition_id, user_id__in=user_ids).delete()
            PendingJoinRequest.objects.filter(team=team).delete()
            notifications.clear_for(team, leader)
            team.delete()
    except Exception as exc:
        logger.exception("Failed to delete team %s", team_id)
        raise OperationFailed('Failed to delete team') from exc

    logger.info("Team %s deleted by leader %s", team_id, leader.pk)
    return {'msg': 'team deleted', 'id': int(team_id)}
