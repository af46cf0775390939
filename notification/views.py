import django_filters
from django.contrib.contenttypes.models import ContentType
from notifications.models import Notification
from rest_framework import viewsets, mixins
from rest_framework.decorators import action
from rest_framework.response import Response

from team.models import Team
from .serializers import NotificationSerializer


class NotificationFilter(django_filters.FilterSet):
    # ?unread=true 只看未读；?team=5 只看某个团队的申请
    unread = django_filters.BooleanFilter(field_name='unread')
    team = django_filters.NumberFilter(method='filter_team')

    class Meta:
        model = Notification
        fields = ['unread', 'team']

    def filter_team(self, queryset, name, value):
        return queryset.filter(
            target_content_type=ContentType.objects.get_for_model(Team),
            target_object_id=str(value),
        )


class NotificationViewSet(mixins.ListModelMixin,
                          mixins.DestroyModelMixin,
                          viewsets.GenericViewSet):
    """
    当前用户收到的通知（队长收到的入队申请）
    GET    /notification/info/?unread=true&team={id}
    DELETE /notification/info/{id}/
    """
    serializer_class = NotificationSerializer
    filterset_class = NotificationFilter

    def get_queryset(self):
        # 只看当前用户的消息，发送人信息一并取出
        return self.request.user.notifications.select_related(
            'target_content_type', 'actor_content_type'
        ).prefetch_related('actor')

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        """获取未读消息数: /notification/info/unread-count/"""
        count = request.user.notifications.unread().count()
        return Response({'unread_count': count})

    @action(detail=True, methods=['post'], url_path='mark-as-read')
    def mark_as_read(self, request, pk=None):
        """标记单条已读: /notification/info/{id}/mark-as-read/"""
        notification = self.get_object()
        notification.mark_as_read()
        return Response(self.get_serializer(notification).data)

    @action(detail=False, methods=['post'], url_path='mark-all-as-read')
    def mark_all_as_read(self, request):
        """全部标记已读: /notification/info/mark-all-as-read/"""
        updated = request.user.notifications.mark_all_as_read()
        return Response({'status': 'all marked as read', 'updated': updated})
