import logging
import secrets

import django_filters
from django.conf import settings
from django.core.mail import send_mail
from rest_framework.exceptions import APIException

from .models import User

logger = logging.getLogger(__name__)


class UserFilter(django_filters.FilterSet):
    # 按角色名称筛选 (Group 关联)
    role = django_filters.CharFilter(field_name='groups__name', lookup_expr='exact', label="角色名称")
    major = django_filters.CharFilter(field_name='major__name', lookup_expr='icontains')
    cohort = django_filters.CharFilter(field_name='cohort', lookup_expr='exact')
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains')

    class Meta:
        model = User
        fields = ['role', 'major', 'cohort', 'name']


class EmailDeliveryFailed(APIException):
    status_code = 500
    default_detail = 'Failed to send email. Please try again later.'
    default_code = 'email_failed'


def generate_otp(length=None):
    """生成纯数字验证码，首位不为 0"""
    length = length or settings.OTP_LENGTH
    first = str(secrets.randbelow(9) + 1)
    rest = ''.join(str(secrets.randbelow(10)) for _ in range(length - 1))
    return first + rest


OTP_MAIL_TEMPLATE = """
<div style="font-family: Arial, sans-serif; line-height: 1.6;">
  <h2 style="color: #333;">OTP Verification</h2>
  <p>Dear user,</p>
  <p>Please use the following code to complete your verification:</p>
  <p style="font-size: 24px; font-weight: bold; color: #333;">{otp}</p>
  <p>If you did not request this code, you can ignore this email.</p>
</div>
"""


def issue_otp(user, subject='OTP Verification'):
    """生成新的验证码，保存到用户并发送邮件"""
    otp = generate_otp()
    user.otp = otp
    user.save(update_fields=['otp'])

    try:
        send_mail(
            subject,
            f"Your OTP is: {otp}",
            settings.DEFAULT_FROM_EMAIL,
            [user.email],
            html_message=OTP_MAIL_TEMPLATE.format(otp=otp),
        )
    except Exception:
        logger.exception("Error sending OTP email to %s", user.email)
        raise EmailDeliveryFailed()

    logger.info("OTP issued for %s", user.student_id)
    return otp
