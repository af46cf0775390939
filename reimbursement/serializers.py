from rest_framework import serializers

from userManage.serializers import UserBriefSerializer
from .models import Reimbursement


class ReimbursementAdminSerializer(serializers.ModelSerializer):
    applicant = UserBriefSerializer(source='user', read_only=True)
    competition_title = serializers.ReadOnlyField(source='competition.title')
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Reimbursement
        fields = ['id', 'competition', 'competition_title', 'applicant', 'name', 'bank_name',
                  'card_number', 'receipt', 'status', 'status_display', 'created_at', 'updated_at']
        read_only_fields = fields


class ReimbursementSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    approved = serializers.IntegerField()
    rejected = serializers.IntegerField()
    pending = serializers.IntegerField()
    latest = ReimbursementAdminSerializer(many=True)
