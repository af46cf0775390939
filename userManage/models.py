from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class Major(models.Model):
    """专业：注册时选择"""
    name = models.CharField(max_length=100, unique=True, verbose_name="专业名称")

    class Meta:
        db_table = 'sys_major'
        verbose_name = "专业"
        ordering = ['name']

    def __str__(self):
        return self.name


class StudentUserManager(UserManager):
    """以学号作为登录字段，username 默认取学号"""

    def _create_user(self, student_id, email, password, **extra_fields):
        if not student_id:
            raise ValueError("The student_id must be set")
        extra_fields.setdefault('username', student_id)
        email = self.normalize_email(email)
        user = self.model(student_id=student_id, email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, student_id, email=None, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(student_id, email, password, **extra_fields)

    def create_superuser(self, student_id, email=None, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_verified', True)
        return self._create_user(student_id, email, password, **extra_fields)


class User(AbstractUser):
    student_id = models.CharField(max_length=10, unique=True, verbose_name="学号")
    name = models.CharField(max_length=100, verbose_name="姓名")
    cohort = models.CharField(max_length=4, blank=True, verbose_name="入学年份")
    major = models.ForeignKey(
        Major,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='students',
        verbose_name="专业"
    )

    # 邮箱验证码，验证或重置后清空
    otp = models.CharField(max_length=10, blank=True, default='')
    is_verified = models.BooleanField(default=False, verbose_name="邮箱已验证")

    USERNAME_FIELD = 'student_id'
    REQUIRED_FIELDS = ['username', 'email']

    objects = StudentUserManager()

    def __str__(self):
        return f"{self.name or self.username} ({self.student_id})"

    @property
    def display_name(self):
        return self.name or self.username
