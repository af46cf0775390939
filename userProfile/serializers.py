from rest_framework import serializers

from .models import Profile


class ProfileSerializer(serializers.ModelSerializer):
    student_id = serializers.ReadOnlyField(source='user.student_id')
    name = serializers.ReadOnlyField(source='user.name')
    email = serializers.ReadOnlyField(source='user.email')
    cohort = serializers.ReadOnlyField(source='user.cohort')
    major = serializers.ReadOnlyField(source='user.major.name')
    role_name = serializers.SerializerMethodField()

    class Meta:
        model = Profile
        fields = [
            'student_id', 'name', 'email', 'cohort', 'major',
            'phone', 'bio', 'picture', 'role_name'
        ]

    def get_role_name(self, obj):
        # 返回用户所属的第一个组名（角色）
        group = obj.user.groups.first()
        return group.name if group else None
