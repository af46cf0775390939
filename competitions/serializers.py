from rest_framework import serializers

from reimbursement.models import Reimbursement
from .models import Competition, CompetitionParticipant, CompetitionResult


class CompetitionSerializer(serializers.ModelSerializer):
    """
    竞赛信息管理的序列化器
    """
    level_display = serializers.CharField(source='get_level_display', read_only=True)
    type_display = serializers.CharField(source='get_type_display', read_only=True)
    has_ended = serializers.ReadOnlyField()

    class Meta:
        model = Competition
        fields = '__all__'
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date must be after start date."})
        return attrs


class ParticipantSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompetitionParticipant
        fields = ['id', 'user', 'competition', 'team', 'is_leader', 'result', 'reimburse_status', 'joined_at']
        read_only_fields = fields


class CompetitionResultSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompetitionResult
        fields = ['id', 'competition', 'user', 'result', 'evidence', 'certificate', 'created_at', 'updated_at']
        read_only_fields = ['id', 'competition', 'user', 'created_at', 'updated_at']


class ResultUploadSerializer(serializers.ModelSerializer):
    """上传成绩：成绩文本必填，佐证材料和证书可选"""
    result = serializers.CharField()

    class Meta:
        model = CompetitionResult
        fields = ['result', 'evidence', 'certificate']


class ReimbursementSerializer(serializers.ModelSerializer):
    competition_title = serializers.ReadOnlyField(source='competition.title')

    class Meta:
        model = Reimbursement
        fields = ['id', 'competition', 'competition_title', 'user', 'name', 'bank_name', 'card_number',
                  'receipt', 'status', 'created_at', 'updated_at']
        read_only_fields = ['id', 'competition', 'user', 'status', 'created_at', 'updated_at']


class ReimbursementSubmitSerializer(serializers.ModelSerializer):
    class Meta:
        model = Reimbursement
        fields = ['name', 'bank_name', 'card_number', 'receipt']


class VerifyReimbursementSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['PROCESS', 'APPROVED', 'REJECTED'])
    user_id = serializers.IntegerField(required=False)
