from rest_framework import serializers
from notifications.models import Notification

from userManage.serializers import UserBriefSerializer


class NotificationSerializer(serializers.ModelSerializer):
    title = serializers.CharField(source='verb', read_only=True)
    message = serializers.CharField(source='description', read_only=True)
    created_at = serializers.DateTimeField(source='timestamp', read_only=True)
    sender = serializers.SerializerMethodField()
    team_id = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = ['id', 'title', 'message', 'unread', 'created_at', 'sender', 'team_id']

    def get_sender(self, obj):
        actor = obj.actor
        if actor is None or not hasattr(actor, 'student_id'):
            return None
        return UserBriefSerializer(actor).data

    def get_team_id(self, obj):
        if obj.target_object_id and obj.target_content_type.model == 'team':
            return int(obj.target_object_id)
        return None
