from datetime import datetime

from django.db.models import Count, Q
from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from competitions.models import CompetitionParticipant
from competitions.serializers import CompetitionSerializer
from userManage.permissions import IsCompAdmin
from userManage.serializers import UserBriefSerializer
from . import services
from .models import Reimbursement, ReimburseStatus
from .serializers import ReimbursementAdminSerializer, ReimbursementSummarySerializer


class ReimbursementAdminViewSet(mixins.ListModelMixin,
                                mixins.RetrieveModelMixin,
                                viewsets.GenericViewSet):
    """
    报销审核（管理员）
    GET  /admin-panel/reimbursements/summary/
    GET  /admin-panel/reimbursements/summary/?export=excel  下载报表
    GET  /admin-panel/reimbursements/{id}/
    POST /admin-panel/reimbursements/{id}/approve|reject|process/
    """
    queryset = Reimbursement.objects.select_related('competition', 'user__major')
    serializer_class = ReimbursementAdminSerializer
    permission_classes = [IsCompAdmin]
    filterset_fields = ['status', 'competition']

    def retrieve(self, request, *args, **kwargs):
        reimbursement = self.get_object()

        # 报销人所在团队：队长和成员一并返回
        participant = CompetitionParticipant.objects.select_related('team__leader').filter(
            user_id=reimbursement.user_id,
            competition_id=reimbursement.competition_id,
        ).first()
        team = participant.team if participant else None
        leader = team.leader if team else reimbursement.user
        members = team.ordered_members() if team else []

        return Response({
            "reimbursement": ReimbursementAdminSerializer(reimbursement, context={'request': request}).data,
            "competition": CompetitionSerializer(reimbursement.competition, context={'request': request}).data,
            "leader": UserBriefSerializer(leader).data,
            "team_members": UserBriefSerializer(members, many=True).data,
        })

    @action(detail=False, methods=['get'])
    def summary(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        counts = queryset.aggregate(
            total=Count('id'),
            approved=Count('id', filter=Q(status=ReimburseStatus.APPROVED)),
            rejected=Count('id', filter=Q(status=ReimburseStatus.REJECTED)),
            pending=Count('id', filter=Q(status__in=[ReimburseStatus.PENDING, ReimburseStatus.PROCESS])),
        )

        if request.query_params.get('export') == 'excel':
            return self._generate_excel(queryset.order_by('competition__title', 'created_at'), counts)

        data = dict(counts, latest=queryset.order_by('-created_at')[:10])
        serializer = ReimbursementSummarySerializer(data, context={'request': request})
        return Response(serializer.data)

    def _transition(self, request, action_name):
        reimbursement = services.transition(self.get_object(), action_name)
        return Response(ReimbursementAdminSerializer(reimbursement, context={'request': request}).data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        return self._transition(request, 'approve')

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        return self._transition(request, 'reject')

    @action(detail=True, methods=['post'])
    def process(self, request, pk=None):
        return self._transition(request, 'process')

    def _generate_excel(self, queryset, counts):
        """生成并返回 Excel 文件流"""
        wb = Workbook()
        ws = wb.active
        ws.title = "Reimbursements"

        headers = ['Competition', 'Student ID', 'Applicant', 'Account Name', 'Bank', 'Card Number',
                   'Status', 'Submitted At']
        ws.append(headers)

        for cell in ws[1]:
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal='center')

        for item in queryset:
            ws.append([
                item.competition.title,
                item.user.student_id,
                item.user.name,
                item.name,
                item.bank_name,
                item.card_number,
                item.get_status_display(),
                item.created_at.strftime('%Y-%m-%d %H:%M'),
            ])

        # 末尾汇总
        ws.append([])
        for key in ('total', 'approved', 'rejected', 'pending'):
            ws.append([key.capitalize(), counts[key]])
            ws.cell(row=ws.max_row, column=1).font = Font(bold=True)

        ws.column_dimensions['A'].width = 40
        ws.column_dimensions['C'].width = 20
        ws.column_dimensions['F'].width = 24

        filename = f"reimbursement_report_{datetime.now().strftime('%Y%m%d')}.xlsx"
        response = HttpResponse(
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        wb.save(response)
        return response
