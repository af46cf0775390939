from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from .models import Major
from .permissions import STUDENT_ROLE

User = get_user_model()


class MajorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Major
        fields = ['id', 'name']


# 定义角色序列化器
class GroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = Group
        fields = ['id', 'name']


class UserBriefSerializer(serializers.ModelSerializer):
    """团队、通知等场景下的用户简要信息"""
    major = serializers.ReadOnlyField(source='major.name')
    picture = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'student_id', 'name', 'major', 'picture']

    def get_picture(self, obj):
        profile = getattr(obj, 'profile', None)
        if profile and profile.picture:
            return profile.picture.url
        return None


# 定义用户序列化器
class UserSerializer(serializers.ModelSerializer):
    # 显式定义密码字段，确保密码是只写的
    password = serializers.CharField(write_only=True, required=False, style={'input_type': 'password'})
    # 方便查看用户所属的角色
    group_details = GroupSerializer(many=True, read_only=True, source='groups')
    major_name = serializers.ReadOnlyField(source='major.name')

    class Meta:
        model = User
        fields = ['id', 'student_id', 'name', 'email', 'cohort', 'major', 'major_name',
                  'is_verified', 'password', 'groups', 'group_details']
        read_only_fields = ['is_verified']

    def update(self, instance, validated_data):
        groups_data = validated_data.pop('groups', None)
        password = validated_data.pop('password', None)

        # 更新普通字段
        for attr, value in validated_data.items():
            setattr(instance, attr, value)

        # 处理密码加密更新
        if password is not None:
            instance.set_password(password)

        instance.save()

        if groups_data is not None:
            instance.groups.set(groups_data)

        return instance


# 注册：学号 + 专业名称 + 入学年份
class SignupSerializer(serializers.ModelSerializer):
    nim = serializers.CharField(source='student_id', max_length=20, validators=[])
    major = serializers.CharField(write_only=True)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    class Meta:
        model = User
        fields = ['name', 'email', 'password', 'nim', 'major', 'cohort']
        extra_kwargs = {
            'email': {'required': True},
        }

    def validate_nim(self, value):
        if len(value) != 10:
            raise serializers.ValidationError("Nim Inputed Is Not Valid")
        if User.objects.filter(student_id=value).exists():
            raise serializers.ValidationError("NIM is already in use.")
        return value

    def validate_major(self, value):
        major = Major.objects.filter(name__iexact=value).first()
        if major is None:
            raise serializers.ValidationError(f"Major {value} does not exist.")
        return major

    def create(self, validated_data):
        user = User.objects.create_user(
            student_id=validated_data['student_id'],
            email=validated_data['email'],
            password=validated_data['password'],
            name=validated_data['name'],
            cohort=validated_data.get('cohort', ''),
            major=validated_data['major'],
        )

        # 默认给一个学生角色
        default_group, _ = Group.objects.get_or_create(name=STUDENT_ROLE)
        user.groups.add(default_group)
        return user


class StudentIdSerializer(serializers.Serializer):
    student_id = serializers.CharField()


class VerifyOtpSerializer(StudentIdSerializer):
    otp = serializers.CharField()


class ResetPasswordSerializer(VerifyOtpSerializer):
    new_password = serializers.CharField(write_only=True, style={'input_type': 'password'})
