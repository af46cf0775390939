import logging

from django.db import transaction
from django_fsm import can_proceed

from competitionPlatform.exceptions import Conflict
from competitions.models import CompetitionParticipant
from .models import ReimburseStatus

logger = logging.getLogger(__name__)

# 目标状态 -> 状态机方法名
STATUS_ACTIONS = {
    ReimburseStatus.PROCESS: 'process',
    ReimburseStatus.APPROVED: 'approve',
    ReimburseStatus.REJECTED: 'reject',
}


def sync_participant_status(reimbursement):
    """
    把报销状态同步到参赛记录：
    队长提交的报销覆盖整个团队，其他情况只更新申请人自己
    """
    participant = CompetitionParticipant.objects.filter(
        user_id=reimbursement.user_id,
        competition_id=reimbursement.competition_id,
    ).first()
    if participant is None:
        return 0

    if participant.team_id and participant.is_leader:
        rows = CompetitionParticipant.objects.filter(team_id=participant.team_id)
    else:
        rows = CompetitionParticipant.objects.filter(pk=participant.pk)
    return rows.update(reimburse_status=reimbursement.status)


def transition(reimbursement, action_name):
    """执行状态流转：process / approve / reject"""
    method = getattr(reimbursement, action_name)
    if not can_proceed(method):
        raise Conflict(f"Cannot {action_name} a reimbursement in status {reimbursement.status}")

    with transaction.atomic():
        method()
        reimbursement.save()
        sync_participant_status(reimbursement)

    logger.info("Reimbursement %s moved to %s", reimbursement.pk, reimbursement.status)
    return reimbursement


def transition_to(reimbursement, status):
    return transition(reimbursement, STATUS_ACTIONS[status])
