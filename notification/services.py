"""
加入申请通知：发给队长的通知记录，基于 django-notifications-hq

actor 为申请人，recipient 为队长，target 为团队；
verb 存放标题，description 存放完整消息
"""
from django.contrib.contenttypes.models import ContentType
from django.utils import formats, timezone
from notifications.models import Notification
from notifications.signals import notify

JOIN_REQUEST_TITLE = 'Team Join Request'


def _team_notifications(team, leader):
    team_type = ContentType.objects.get_for_model(team)
    return Notification.objects.filter(
        recipient=leader,
        target_content_type=team_type,
        target_object_id=str(team.pk),
    )


def exists_for(team, requester):
    """申请人是否已有一条发给该团队队长的通知"""
    user_type = ContentType.objects.get_for_model(requester)
    return _team_notifications(team, team.leader).filter(
        actor_content_type=user_type,
        actor_object_id=str(requester.pk),
    ).exists()


def notify_leader(team, requester):
    when = formats.date_format(timezone.localtime(), 'DATETIME_FORMAT')
    message = f"{requester.display_name} requested to join team {team.name} on [{when}]"
    notify.send(
        requester,
        recipient=team.leader,
        verb=JOIN_REQUEST_TITLE,
        target=team,
        description=message,
    )
    return message


def clear_for(team, leader):
    """删除发给队长的、关于该团队的全部通知"""
    deleted, _ = _team_notifications(team, leader).delete()
    return deleted
