import os
import time

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from competitions.validators import upload_validators


class ReimburseStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PROCESS = 'PROCESS', 'Process'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


def receipt_upload_path(instance, filename):
    ext = os.path.splitext(filename)[1].lower()
    return os.path.join('receipt', timezone.now().strftime('%Y/%m'), f"receipt-{int(time.time() * 1000)}{ext}")


class Reimbursement(models.Model):
    competition = models.ForeignKey('competitions.Competition', on_delete=models.CASCADE, related_name='reimbursements')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reimbursements')

    # 收款信息
    name = models.CharField(max_length=100, verbose_name="收款人")
    bank_name = models.CharField(max_length=100, verbose_name="银行")
    card_number = models.CharField(max_length=50, verbose_name="卡号")
    receipt = models.FileField(upload_to=receipt_upload_path, validators=upload_validators, verbose_name="收据")

    status = FSMField(default=ReimburseStatus.PENDING, choices=ReimburseStatus.choices, verbose_name="审核状态")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sys_reimbursement'
        verbose_name = "报销申请"
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'competition'], name='unique_reimbursement_per_user_competition')
        ]

    def __str__(self):
        return f"{self.name} - {self.competition_id} ({self.status})"

    @transition(field=status, source=ReimburseStatus.PENDING, target=ReimburseStatus.PROCESS)
    def process(self):
        pass

    @transition(field=status, source=[ReimburseStatus.PENDING, ReimburseStatus.PROCESS], target=ReimburseStatus.APPROVED)
    def approve(self):
        pass

    @transition(field=status, source=[ReimburseStatus.PENDING, ReimburseStatus.PROCESS], target=ReimburseStatus.REJECTED)
    def reject(self):
        pass
