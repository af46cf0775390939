import os
import time

from django.conf import settings
from django.core.validators import FileExtensionValidator
from django.db import models

from competitions.validators import validate_upload_size


def picture_upload_path(instance, filename):
    ext = os.path.splitext(filename)[1].lower()
    return os.path.join('picture', f"picture-{instance.user_id}-{int(time.time() * 1000)}{ext}")


class Profile(models.Model):
    # 用户账号删除，档案也随之删除
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='profile'
    )

    phone = models.CharField(max_length=20, verbose_name="手机号", blank=True, default='')
    bio = models.TextField(verbose_name="个人简介", blank=True, default='')
    picture = models.FileField(
        upload_to=picture_upload_path,
        validators=[FileExtensionValidator(['jpg', 'jpeg', 'png']), validate_upload_size],
        blank=True,
        verbose_name="头像"
    )

    class Meta:
        db_table = 'sys_user_profile'
        verbose_name = "个人档案"

    def __str__(self):
        return f"{self.user.name} ({self.user.student_id})"
