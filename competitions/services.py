"""
竞赛相关流程：报名、建队、参赛状态汇总、成绩上传、报销提交
"""
import logging

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound, ValidationError

from competitionPlatform.exceptions import Conflict
from reimbursement.models import Reimbursement, ReimburseStatus
from reimbursement.services import sync_participant_status, transition_to
from team.models import Team, TeamStatus
from .models import CompetitionParticipant, CompetitionResult, CompetitionType

logger = logging.getLogger(__name__)


def join_competition(competition, user):
    if CompetitionParticipant.objects.filter(user=user, competition=competition).exists():
        raise Conflict('User already joined this competition')

    try:
        participant = CompetitionParticipant.objects.create(user=user, competition=competition)
    except IntegrityError:
        raise Conflict('User already joined this competition')

    logger.info("User %s joined competition %s", user.pk, competition.pk)
    return participant


def create_team(competition, leader, data):
    """
    创建团队：当前用户成为队长。
    max_members = 招募人数 + 1（队长），初始 open_slots = 招募人数；
    同时为队长建立共享的成绩记录，成员加入时继承
    """
    if competition.type != CompetitionType.TEAM:
        raise Conflict('This competition does not accept teams')

    if Team.objects.filter(competition=competition, name=data['name']).exists():
        raise Conflict('Team with this name already exists')

    participant = CompetitionParticipant.objects.filter(user=leader, competition=competition).first()
    if participant and participant.team_id:
        raise Conflict('User already belongs to a team in this competition')

    open_slots = data['open_slots']
    try:
        with transaction.atomic():
            team = Team.objects.create(
                competition=competition,
                leader=leader,
                name=data['name'],
                description=data.get('description', ''),
                phone=data.get('phone', ''),
                max_members=open_slots + 1,
                open_slots=open_slots,
                end_date=data.get('end_date'),
                status=TeamStatus.ACTIVE,
            )

            result, _ = CompetitionResult.objects.get_or_create(competition=competition, user=leader)

            if participant is None:
                participant = CompetitionParticipant(user=leader, competition=competition)
            participant.team = team
            participant.is_leader = True
            participant.result = result
            participant.save()
    except IntegrityError:
        raise Conflict('Team with this name already exists')

    logger.info("User %s created team %s in competition %s", leader.pk, team.pk, competition.pk)
    return team


def get_user_status(competition, user):
    """用户在某竞赛下的状态汇总，只读"""
    participant = CompetitionParticipant.objects.select_related('team').filter(
        user=user, competition=competition
    ).first()
    team = participant.team if participant else None

    reimbursement = Reimbursement.objects.filter(user=user, competition=competition).first()
    result = CompetitionResult.objects.filter(user=user, competition=competition).first()
    if result is None and participant and participant.result_id:
        # 团队成员共享队长的成绩记录
        result = participant.result

    return {
        'is_joined': participant is not None,
        'has_team': team is not None,
        'is_leader': team is not None and team.leader_id == user.pk,
        'team_details': team,
        'reimburse_detail': reimbursement,
        'competition_result': result,
        'has_reimburse': reimbursement is not None,
    }


def get_leader_team_members(competition, leader):
    team = Team.objects.filter(competition=competition, leader=leader).select_related('leader').first()
    if team is None:
        raise NotFound('Team not found')
    return team.leader, team.ordered_members()


def upload_result(competition, user, data):
    participant = CompetitionParticipant.objects.select_related('result').filter(
        user=user, competition=competition
    ).first()
    if participant is None:
        raise NotFound('You are not registered for this competition.')

    result = participant.result
    if result is not None and result.result:
        raise Conflict('Result already exists for this competition and user.')

    with transaction.atomic():
        if result is None:
            result, _ = CompetitionResult.objects.get_or_create(competition=competition, user=user)
            participant.result = result
            participant.save(update_fields=['result'])

        result.result = data['result']
        for field in ('evidence', 'certificate'):
            if data.get(field):
                setattr(result, field, data[field])
        result.save()

    logger.info("Result uploaded for competition %s by user %s", competition.pk, user.pk)
    return result


def submit_reimbursement(competition, user, data):
    if not CompetitionParticipant.objects.filter(user=user, competition=competition).exists():
        raise ValidationError({'detail': 'User is not a participant in this competition'})

    if Reimbursement.objects.filter(user=user, competition=competition).exists():
        raise Conflict('Reimbursement already submitted for this competition')

    try:
        with transaction.atomic():
            reimbursement = Reimbursement.objects.create(
                competition=competition,
                user=user,
                status=ReimburseStatus.PENDING,
                **data,
            )
            sync_participant_status(reimbursement)
    except IntegrityError:
        raise Conflict('Reimbursement already submitted for this competition')

    logger.info("Reimbursement %s submitted for competition %s", reimbursement.pk, competition.pk)
    return reimbursement


def verify_reimbursement(competition, status, user_id=None):
    """管理员按竞赛审核报销：取第一条匹配的申请进行状态流转"""
    queryset = Reimbursement.objects.filter(competition=competition).order_by('created_at')
    if user_id is not None:
        queryset = queryset.filter(user_id=user_id)
    reimbursement = queryset.first()
    if reimbursement is None:
        raise NotFound('Reimbursement request not found')
    return transition_to(reimbursement, status)
